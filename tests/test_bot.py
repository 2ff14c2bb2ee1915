"""Tests for the Discord cog and bot factory (bot.py)."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from active_users import COUNT_TITLE, LIST_TITLE, STORE_FAILURE_MESSAGE
from activity_store import StoreError
from bot import ActiveUsersCog, create_bot, main
from helpers import FakeStore, make_record, make_user


def _make_ctx() -> MagicMock:
    ctx = MagicMock()
    ctx.send = AsyncMock()
    return ctx


def _sent(ctx: MagicMock) -> list[str]:
    return [c.args[0] for c in ctx.send.await_args_list]


class TestActiveUsersCommand:
    def test_list_mode_sends_title_then_chunks(self, fixed_today):
        yesterday = fixed_today - timedelta(days=1)
        store = FakeStore([make_record(yesterday, [make_user("A", "B", "a@b.com")])])
        cog = ActiveUsersCog(MagicMock(), store)
        ctx = _make_ctx()

        asyncio.run(cog.active_users.callback(cog, ctx, "true", "2"))

        sent = _sent(ctx)
        assert sent[0] == LIST_TITLE
        assert len(sent) == 2
        assert "A B (a@b.com)" in sent[1]
        assert sent[1].startswith("```") and sent[1].endswith("```")
        assert store.calls == [(fixed_today - timedelta(days=2), True)]

    def test_defaults_to_count_mode(self):
        store = FakeStore()
        cog = ActiveUsersCog(MagicMock(), store)
        ctx = _make_ctx()

        asyncio.run(cog.active_users.callback(cog, ctx))

        assert _sent(ctx)[0] == COUNT_TITLE
        assert store.calls[0][1] is False

    def test_validation_error_single_message(self):
        store = FakeStore()
        cog = ActiveUsersCog(MagicMock(), store)
        ctx = _make_ctx()

        asyncio.run(cog.active_users.callback(cog, ctx, "notabool"))

        assert _sent(ctx) == ["LIST=notabool is not a valid boolean!"]
        assert store.calls == []

    def test_store_error_reported_not_raised(self):
        cog = ActiveUsersCog(MagicMock(), FakeStore(error=StoreError("down")))
        ctx = _make_ctx()

        asyncio.run(cog.active_users.callback(cog, ctx, "true"))

        assert _sent(ctx) == [STORE_FAILURE_MESSAGE]


class TestSendReport:
    def test_messages_sent_in_order(self):
        send = AsyncMock()
        cog = ActiveUsersCog(MagicMock(), FakeStore())
        with patch("bot.build_active_users_messages", return_value=["one", "two", "three"]):
            asyncio.run(cog.send_report(send, []))
        assert [c.args[0] for c in send.await_args_list] == ["one", "two", "three"]

    def test_send_failure_stops_delivery(self):
        send = AsyncMock(side_effect=[None, RuntimeError("rate limited"), None])
        cog = ActiveUsersCog(MagicMock(), FakeStore())
        with patch("bot.build_active_users_messages", return_value=["one", "two", "three"]):
            with pytest.raises(RuntimeError):
                asyncio.run(cog.send_report(send, []))
        assert send.await_count == 2


class TestCreateBot:
    def test_registers_cog_on_setup(self):
        bot = create_bot(FakeStore())
        assert bot.command_prefix == "!"
        asyncio.run(bot.setup_hook())
        assert bot.get_cog("ActiveUsers") is not None
        assert bot.get_command("active_users") is not None

    def test_message_content_intent_enabled(self):
        bot = create_bot(FakeStore())
        assert bot.intents.message_content is True


class TestMain:
    def test_missing_token_exits(self):
        with patch("config.DISCORD_TOKEN", ""):
            with pytest.raises(SystemExit):
                main()
