"""
Per-session feed refresh state.

A FeedMonitor owns the last good row set for one dashboard session and
decides when the next fetch is due. The Streamlit fragment that renders the
timeline ticks it on a fixed interval; stopping the monitor cancels every
later refresh while keeping the rows it already has.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pandas as pd

from pigger_timeline.data.loader import FeedError, FeedResult, try_load

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FeedState:
    rows: pd.DataFrame
    last_attempt_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_error_at: Optional[datetime] = None
    error: Optional[FeedError] = None
    refresh_count: int = 0

    @property
    def is_stale(self) -> bool:
        return self.error is not None

    @property
    def has_data(self) -> bool:
        return self.last_success_at is not None


class FeedMonitor:
    def __init__(
        self,
        loader: Callable[[], FeedResult] = try_load,
        interval: timedelta = timedelta(seconds=60),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.loader = loader
        self.interval = interval
        self.clock = clock
        self.active = True
        self.state = FeedState(rows=pd.DataFrame())

    def due(self, now: Optional[datetime] = None) -> bool:
        if self.state.last_attempt_at is None:
            return True
        if not self.active:
            return False
        now = now or self.clock()
        return now - self.state.last_attempt_at >= self.interval

    def refresh(self, now: Optional[datetime] = None) -> FeedState:
        """Fetch now. A failed fetch keeps the previous rows and records the error."""
        now = now or self.clock()
        result = self.loader()
        state = self.state
        state.last_attempt_at = now
        if result.ok:
            state.rows = result.rows
            state.last_success_at = now
            state.error = None
            state.refresh_count += 1
        else:
            state.error = result.error
            state.last_error_at = now
            logger.warning(
                "Feed refresh failed (%s): %s; keeping %d rows from %s",
                type(result.error).__name__,
                result.error,
                len(state.rows),
                state.last_success_at.isoformat() if state.last_success_at else "never",
            )
        return state

    def ensure_fresh(self, now: Optional[datetime] = None) -> FeedState:
        """Refresh only when due; the first call always loads."""
        if self.due(now):
            return self.refresh(now)
        return self.state

    def stop(self) -> None:
        self.active = False

    def start(self) -> None:
        self.active = True
