"""MongoDB access layer for daily user activity logs.

Each daily log document looks like ``{date, userIds}``, where ``date`` is a
UTC midnight and ``userIds`` references documents in the users collection.
``ActivityStore.fetch_activity`` returns those logs as plain record dicts
(see ``active_users`` for the record shape).
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

import config

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the activity query cannot be executed."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _to_date(value: Any) -> date | None:
    """Return the calendar day of a stored ``date`` field.

    Args:
        value: A ``datetime`` (naive values are taken as UTC), a ``date``,
            or an ISO-8601 string.

    Returns:
        The UTC calendar day, or None if *value* is not a recognisable date.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return _to_date(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def _start_of_day_utc(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _user_ref(doc: dict) -> dict:
    """Project a users-collection document onto the fields the report needs."""
    return {
        "id": str(doc.get("_id", "")),
        "first_name": doc.get("firstName") or "",
        "last_name": doc.get("lastName") or "",
        "email": doc.get("email") or "",
    }


def _order_users(users: list[dict], user_ids: list[str]) -> list[dict]:
    """Sort joined users into ``userIds`` order.

    ``$lookup`` does not preserve the order of the local array.  Users whose
    id is not in *user_ids* keep their relative order at the end.
    """
    position = {uid: i for i, uid in enumerate(user_ids)}
    return sorted(users, key=lambda u: position.get(u["id"], len(position)))


def _record_from_doc(doc: dict) -> dict | None:
    """Convert a daily log document into an activity record dict.

    Returns:
        ``{"date", "users", "user_ids"}``, or None if the document has no
        usable date.
    """
    day = _to_date(doc.get("date"))
    if day is None:
        logger.warning("Skipping daily log %s with invalid date %r", doc.get("_id"), doc.get("date"))
        return None

    user_ids = [str(uid) for uid in doc.get("userIds") or []]
    users = [_user_ref(u) for u in doc.get("users") or [] if isinstance(u, dict)]
    return {
        "date": day,
        "users": _order_users(users, user_ids),
        "user_ids": user_ids,
    }


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class ActivityStore:
    """Read-only view over the daily user log and users collections."""

    def __init__(
        self,
        uri: str = config.MONGODB_URI,
        database: str = config.MONGODB_DATABASE,
        client: MongoClient | None = None,
    ):
        self.client = client if client is not None else MongoClient(uri)
        self.db: Database = self.client[database]
        self.daily_user_logs: Collection = self.db[config.DAILY_USER_LOG_COLLECTION]
        self.users_collection_name = config.USERS_COLLECTION

    def _join_pipeline(self, query: dict) -> list[dict]:
        return [
            {"$match": query},
            {"$lookup": {
                "from": self.users_collection_name,
                "localField": "userIds",
                "foreignField": "_id",
                "as": "users",
            }},
            {"$project": {
                "date": 1,
                "userIds": 1,
                "users._id": 1,
                "users.firstName": 1,
                "users.lastName": 1,
                "users.email": 1,
            }},
        ]

    def fetch_activity(self, window_start: date, join_users: bool = False) -> list[dict]:
        """Fetch every daily log dated on or after *window_start*.

        Args:
            window_start: First calendar day of the window (UTC).
            join_users: If True, populate each record's ``users`` with the
                referenced user profiles.  Otherwise ``users`` is empty and
                only ``user_ids`` is filled.

        Returns:
            List of activity record dicts in no particular order.

        Raises:
            StoreError: If the find or aggregation fails.
        """
        query = {"date": {"$gte": _start_of_day_utc(window_start)}}
        try:
            if join_users:
                docs = list(self.daily_user_logs.aggregate(self._join_pipeline(query)))
            else:
                docs = list(self.daily_user_logs.find(query, {"date": 1, "userIds": 1}))
        except PyMongoError as e:
            raise StoreError(f"Daily user log query failed: {e}") from e

        records = []
        for doc in docs:
            record = _record_from_doc(doc)
            if record is not None:
                records.append(record)

        if not records:
            logger.info("No daily user logs found since %s", window_start.isoformat())
        return records

    def close(self) -> None:
        self.client.close()
