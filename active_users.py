"""Daily active user report: window, densification, and rendering.

Turns the sparse daily user logs returned by ``activity_store`` into one
record per calendar day and renders them as text for chat delivery or as a
count series for charts.  Used by the Discord cog (bot.py), the HTTP API
(app.py) and the CLI (active_users_report.py).

Record shape::

    {"date": date, "users": [UserRef, ...], "user_ids": [str, ...]}

where a UserRef is ``{"id", "first_name", "last_name", "email"}``.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable

import config
from activity_store import StoreError
from message_chunks import split_long_message

logger = logging.getLogger(__name__)

DAY_ABBREVIATIONS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

LIST_TITLE = "Active Users:"
COUNT_TITLE = "Active User Counts:"
STORE_FAILURE_MESSAGE = "Failed to fetch active users. Please try again later."

# ASCII digits only, optionally signed so negatives get their own message
_DAYS_PATTERN = re.compile(r"-?[0-9]+")


class ReportArgumentError(ValueError):
    """A LIST or DAYS argument could not be parsed.  The message is user-facing."""


# ---------------------------------------------------------------------------
# Arguments and window
# ---------------------------------------------------------------------------

def parse_report_args(
    args: list[str],
    default_days: int = config.DEFAULT_DAYS,
    max_days: int = config.MAX_DAYS,
) -> dict:
    """Parse ``[LIST] [DAYS]`` command arguments.

    Args:
        args: Whitespace-split argument tokens.  Tokens after the second
            are ignored.
        default_days: DAYS value used when the second token is absent.
        max_days: Largest DAYS value accepted.

    Returns:
        Dict with keys list_mode (bool) and days (int, never negative).

    Raises:
        ReportArgumentError: If LIST is not "true"/"false" or DAYS is not a
            plain decimal integer in ``0..max_days``.
    """
    list_mode = False
    days = default_days

    if len(args) >= 1:
        if args[0] == "true":
            list_mode = True
        elif args[0] == "false":
            list_mode = False
        else:
            raise ReportArgumentError(f"LIST={args[0]} is not a valid boolean!")

    if len(args) >= 2:
        token = args[1]
        if not _DAYS_PATTERN.fullmatch(token):
            raise ReportArgumentError(f"DAYS={token} is not a valid number!")
        if token.startswith("-"):
            raise ReportArgumentError(f"DAYS={token} must not be negative!")
        days = int(token)
        if days > max_days:
            raise ReportArgumentError(f"DAYS={token} is too large!")

    return {"list_mode": list_mode, "days": days}


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def compute_window(days: int, today: date) -> tuple[date, date]:
    """Return the ``[start_date, today)`` window covering the last *days* days.

    Today is excluded because its activity is still incomplete.

    Raises:
        ReportArgumentError: If the start date would precede ``date.min``.
    """
    try:
        start_date = today - timedelta(days=days)
    except OverflowError:
        raise ReportArgumentError(f"DAYS={days} is too large!") from None
    return start_date, today


# ---------------------------------------------------------------------------
# Densification
# ---------------------------------------------------------------------------

def _empty_record(day: date) -> dict:
    return {"date": day, "users": [], "user_ids": []}


def densify_daily_records(
    records: Iterable[dict],
    start_date: date,
    today: date,
) -> list[dict]:
    """Fill gaps so that every day in ``[start_date, today)`` has a record.

    Records are bucketed by date, so the input may arrive in any order.
    Records that share a date are merged (user lists concatenated in input
    order); records outside the window are dropped.

    Args:
        records: Sparse activity records, each with a "date" key holding a
            ``date`` and optional "users" / "user_ids" lists.
        start_date: First day of the window (inclusive).
        today: Day after the last day of the window (exclusive).

    Returns:
        List of ``(today - start_date).days`` records ordered oldest to
        newest.  Days with no input record get empty user lists.  Empty if
        *start_date* is not before *today*.
    """
    by_date: dict[date, dict] = {}
    for record in records:
        day = record["date"]
        if not start_date <= day < today:
            logger.debug("Dropping daily record for %s outside window %s..%s", day, start_date, today)
            continue
        bucket = by_date.setdefault(day, _empty_record(day))
        bucket["users"].extend(record.get("users") or [])
        bucket["user_ids"].extend(record.get("user_ids") or [])

    dense = []
    current = start_date
    while current < today:
        dense.append(by_date.get(current) or _empty_record(current))
        current += timedelta(days=1)
    return dense


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def weekday_abbreviation(day: date) -> str:
    """Return "Sun".."Sat" for *day*.

    ``date.isoweekday()`` runs 1 (Mon) .. 7 (Sun); modulo 7 gives a
    Sunday-first index.
    """
    return DAY_ABBREVIATIONS[day.isoweekday() % 7]


def format_date(day: date) -> str:
    return day.isoformat()


def _day_header(day: date, count: int) -> str:
    return f"{weekday_abbreviation(day)} {format_date(day)} | Count: {count}\n"


def _format_user(user: dict) -> str:
    first = user.get("first_name") or ""
    last = user.get("last_name") or ""
    email = user.get("email") or ""
    return f"\t- {first} {last} ({email})\n"


def render_user_listing(records: list[dict]) -> str:
    """Render one header line per day followed by one line per active user.

    Args:
        records: Densified records with joined "users".

    Returns:
        The listing text (every line newline-terminated), or "" when
        *records* is empty.
    """
    lines = []
    for record in records:
        users = record.get("users") or []
        lines.append(_day_header(record["date"], len(users)))
        lines.extend(_format_user(u) for u in users)
    return "".join(lines)


def _user_count(record: dict) -> int:
    return len(record.get("user_ids") or record.get("users") or [])


def compute_count_series(records: list[dict]) -> list[dict[str, Any]]:
    """Convert densified records into ``{"date", "count"}`` points for charting.

    Counts come from the stored user ids, which are present whether or not
    user profiles were joined.
    """
    return [
        {"date": format_date(record["date"]), "count": _user_count(record)}
        for record in records
    ]


def render_count_series(series: list[dict[str, Any]]) -> str:
    """Render a count series as one ``Wkd YYYY-MM-DD | Count: n`` line per day."""
    return "".join(
        _day_header(date.fromisoformat(point["date"]), point["count"])
        for point in series
    )


# ---------------------------------------------------------------------------
# Command entry points
# ---------------------------------------------------------------------------

def build_active_users_report(
    store: Any,
    days: int,
    list_mode: bool,
    today: date | None = None,
) -> str:
    """Query, densify, and render the report text for one window.

    Args:
        store: Object with ``fetch_activity(window_start, join_users)``.
        days: Window length in days.
        list_mode: Render the per-user listing if True, counts otherwise.
        today: Exclusive end of the window.  Defaults to the current UTC day.

    Raises:
        ReportArgumentError: If *days* is too large for a valid window.
        StoreError: If the store query fails.
    """
    today = today or utc_today()
    start_date, today = compute_window(days, today)

    records = store.fetch_activity(start_date, join_users=list_mode)
    dense = densify_daily_records(records, start_date, today)
    logger.info(
        "Active users report: %d stored day(s), %d day(s) in window starting %s",
        len(records), len(dense), start_date.isoformat(),
    )

    if list_mode:
        return render_user_listing(dense)
    return render_count_series(compute_count_series(dense))


def report_title(list_mode: bool) -> str:
    return LIST_TITLE if list_mode else COUNT_TITLE


def build_active_users_messages(
    args: list[str],
    store: Any,
    today: date | None = None,
    limit: int = config.MESSAGE_LIMIT,
    wrapper: str = config.MESSAGE_WRAPPER,
) -> list[str]:
    """One-call entry point: turn command arguments into chat messages.

    Never raises for bad input or store failures; those become a single
    explanatory message instead.

    Args:
        args: Command argument tokens (``[LIST] [DAYS]``).
        store: Object with ``fetch_activity(window_start, join_users)``.
        today: Exclusive end of the window.  Defaults to the current UTC day.
        limit: Maximum length of each message.
        wrapper: Delimiter wrapped around each report chunk.

    Returns:
        Messages to send in order: a title followed by the report chunks,
        or a single error message.
    """
    try:
        request = parse_report_args(args)
        report = build_active_users_report(
            store, request["days"], request["list_mode"], today=today,
        )
    except ReportArgumentError as e:
        return [str(e)]
    except StoreError:
        logger.exception("Active users query failed for args %r", args)
        return [STORE_FAILURE_MESSAGE]

    return [report_title(request["list_mode"])] + split_long_message(report, wrapper, limit)
