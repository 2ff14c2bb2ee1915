"""Shared test helpers for active users tests.

Regular functions (not fixtures) that can be imported by any test module.
"""

from __future__ import annotations

from datetime import date


def make_user(first: str, last: str = "", email: str = "", user_id: str | None = None) -> dict:
    """Build a UserRef dict as returned by the activity store."""
    return {
        "id": user_id or f"id-{first.lower()}",
        "first_name": first,
        "last_name": last,
        "email": email,
    }


def make_record(day: date, users: list[dict] | None = None, user_ids: list[str] | None = None) -> dict:
    """Build an activity record.

    Args:
        day: The record's calendar day.
        users: Joined user profiles.  Defaults to none.
        user_ids: Stored user ids.  Defaults to the ids of *users*.
    """
    users = users or []
    if user_ids is None:
        user_ids = [u["id"] for u in users]
    return {"date": day, "users": users, "user_ids": user_ids}


def unwrap(chunk: str, wrapper: str = "```") -> str:
    """Strip the wrapper pair added by ``split_long_message``."""
    assert chunk.startswith(wrapper) and chunk.endswith(wrapper)
    return chunk[len(wrapper) : len(chunk) - len(wrapper)]


class FakeStore:
    """In-memory stand-in for ``ActivityStore``.

    Returns *records* (optionally without joined users) and remembers every
    call.  If *error* is set, ``fetch_activity`` raises it instead.
    """

    def __init__(self, records: list[dict] | None = None, error: Exception | None = None):
        self.records = records or []
        self.error = error
        self.calls: list[tuple[date, bool]] = []

    def fetch_activity(self, window_start: date, join_users: bool = False) -> list[dict]:
        self.calls.append((window_start, join_users))
        if self.error is not None:
            raise self.error
        if join_users:
            return list(self.records)
        return [dict(r, users=[]) for r in self.records]

    def close(self) -> None:
        pass
