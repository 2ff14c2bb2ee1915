"""Runtime configuration for the active users report.

Values come from the environment (optionally via a ``.env`` file in the
working directory).  Every setting has a default suitable for local use
except ``DISCORD_TOKEN``.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Discord
# ---------------------------------------------------------------------------
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN", "")
COMMAND_PREFIX = os.getenv("COMMAND_PREFIX", "!")

# Discord rejects messages longer than 2000 characters
MESSAGE_LIMIT = int(os.getenv("MESSAGE_LIMIT", 2000))
MESSAGE_WRAPPER = os.getenv("MESSAGE_WRAPPER", "```")

# ---------------------------------------------------------------------------
# MongoDB
# ---------------------------------------------------------------------------
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DATABASE = os.getenv("MONGODB_DATABASE", "schej-it")
DAILY_USER_LOG_COLLECTION = os.getenv("DAILY_USER_LOG_COLLECTION", "dailyUserLogs")
USERS_COLLECTION = os.getenv("USERS_COLLECTION", "users")

# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------
DEFAULT_DAYS = int(os.getenv("DEFAULT_DAYS", 7))
MAX_DAYS = int(os.getenv("MAX_DAYS", 366))
CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", 60))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
