"""FastAPI service exposing the daily active user count series.

Serves the densified ``{date, count}`` series as JSON for the charting
front end, cached per window length (short TTL since today's logs keep
changing until the day is over).

Deployment: uvicorn app:app --host 127.0.0.1 --port 8204
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache
from typing import Any

from fastapi import FastAPI, HTTPException, Query

import config
from active_users import compute_count_series, compute_window, densify_daily_records, utc_today
from activity_store import ActivityStore, StoreError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_store() -> ActivityStore:
    """Return the process-wide store, connecting on first use."""
    return ActivityStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Only close a store that was actually opened
    if get_store.cache_info().currsize:
        get_store().close()
        get_store.cache_clear()


app = FastAPI(title="Active Users", lifespan=lifespan)


def build_count_payload(store: ActivityStore, days: int) -> dict[str, Any]:
    """Fetch and densify the last *days* days into the API payload.

    Raises:
        StoreError: If the store query fails.
    """
    start_date, today = compute_window(days, utc_today())
    records = store.fetch_activity(start_date, join_users=False)
    series = compute_count_series(densify_daily_records(records, start_date, today))
    return {
        "generated_at": datetime.now().isoformat(),
        "start_date": start_date.isoformat(),
        "end_date": today.isoformat(),
        "days": days,
        "series": series,
    }


# ---------------------------------------------------------------------------
# Thread-safe cache
# ---------------------------------------------------------------------------
_cache_lock = threading.Lock()
_cache: dict[int, dict[str, Any]] = {}


def _get_cached_payload(days: int, force_refresh: bool = False) -> dict[str, Any]:
    """Return the cached payload for *days*, rebuilding if stale or forced."""
    now = time.monotonic()
    with _cache_lock:
        entry = _cache.get(days)
        if (
            not force_refresh
            and entry is not None
            and (now - entry["built_at"]) < config.CACHE_TTL_SECONDS
        ):
            return entry["data"]

    try:
        data = build_count_payload(get_store(), days)
    except StoreError:
        logger.exception("Active users query failed for days=%d", days)
        raise HTTPException(status_code=503, detail="Activity store unavailable") from None

    with _cache_lock:
        _cache[days] = {"data": data, "built_at": time.monotonic()}

    return data


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health")
@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/api/active-users")
def api_active_users(
    days: int = Query(config.DEFAULT_DAYS, ge=0, le=config.MAX_DAYS),
    refresh: bool = False,
):
    """Return the daily active user counts for the last *days* days."""
    return _get_cached_payload(days, force_refresh=refresh)
