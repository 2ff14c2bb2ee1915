"""Discord bot exposing the ``!active_users`` command.

Deployment: python bot.py  (reads DISCORD_TOKEN and MONGODB_* from the
environment or a .env file)
"""

from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands

import config
from active_users import build_active_users_messages
from activity_store import ActivityStore

logger = logging.getLogger(__name__)

ACTIVE_USERS_DESCRIPTION = """Gets the number of active users in the database, based on last sign in date.
  - if LIST is true, it will list the name/email of all users, otherwise, it will show the daily counts
  - DAYS is the amount of days since last sign in
"""


class ActiveUsersCog(commands.Cog, name="ActiveUsers"):
    """Reports daily active users from the activity store."""

    def __init__(self, bot: commands.Bot, store: ActivityStore):
        self.bot = bot
        self.store = store

    async def send_report(self, send, args: list[str]) -> None:
        """Build the report off the event loop, then deliver it message by message.

        Args:
            send: Coroutine function accepting one message string
                (e.g. ``ctx.send``).
            args: Command argument tokens.
        """
        messages = await asyncio.to_thread(build_active_users_messages, args, self.store)
        for message in messages:
            await send(message)

    @commands.command(
        name="active_users",
        help=ACTIVE_USERS_DESCRIPTION,
        usage="[LIST=false] [DAYS=7]",
    )
    async def active_users(self, ctx: commands.Context, *args: str) -> None:
        logger.info("%s invoked active_users with args %r", ctx.author, args)
        await self.send_report(ctx.send, list(args))


def create_bot(store: ActivityStore) -> commands.Bot:
    """Create the bot and register the active users cog on startup."""
    intents = discord.Intents.default()
    intents.message_content = True
    bot = commands.Bot(command_prefix=config.COMMAND_PREFIX, intents=intents)

    @bot.event
    async def setup_hook() -> None:
        await bot.add_cog(ActiveUsersCog(bot, store))

    @bot.event
    async def on_ready() -> None:
        logger.info("Logged in as %s", bot.user)

    return bot


def main() -> None:
    """Entry point: connect to MongoDB and run the bot until interrupted."""
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not config.DISCORD_TOKEN:
        raise SystemExit("DISCORD_TOKEN is not set")

    store = ActivityStore()
    bot = create_bot(store)
    try:
        bot.run(config.DISCORD_TOKEN, log_handler=None)
    finally:
        store.close()


if __name__ == "__main__":
    main()
