"""Client view of the portfolio that refreshes itself on a timer."""
from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable, List, Optional, Sequence

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .aggregation import PortfolioTable, build_table
from .models import Holding
from .rendering import render_table

LOGGER = logging.getLogger(__name__)

DEFAULT_REFRESH_SECONDS = 15.0
FETCH_ERROR_MESSAGE = "Could not update portfolio. Data shown may be outdated."
# Slow fetches must not cause ticks to be skipped.
MAX_OVERLAPPING_POLLS = 32


class PollHandle:
    """Cancellable reference to a repeating scheduler job."""

    def __init__(self, scheduler: BaseScheduler, job_id: str) -> None:
        self.scheduler = scheduler
        self.job_id = job_id
        self._cancelled = False
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        """Remove the job. Returns ``False`` if it was already cancelled."""

        with self._lock:
            if self._cancelled:
                return False
            self._cancelled = True
        try:
            self.scheduler.remove_job(self.job_id)
        except JobLookupError:
            LOGGER.debug("Polling job %s was already gone", self.job_id)
        return True


def start_polling(
    scheduler: BaseScheduler,
    func: Callable[[], None],
    interval_seconds: float,
    job_id: str | None = None,
) -> PollHandle:
    """Run ``func`` every ``interval_seconds`` until the returned handle is cancelled."""

    job = scheduler.add_job(
        func,
        trigger=IntervalTrigger(seconds=interval_seconds),
        id=job_id or f"portfolio-poll-{uuid.uuid4().hex}",
        max_instances=MAX_OVERLAPPING_POLLS,
        coalesce=False,
        misfire_grace_time=None,
    )
    return PollHandle(scheduler, job.id)


class PortfolioPresenter:
    """Holds the holdings shown by one view and keeps them up to date.

    ``fetch`` returns a fresh holdings list or raises. Failures never escape a
    tick: the previous holdings stay on screen and :data:`FETCH_ERROR_MESSAGE`
    is shown alongside them. Each tick is numbered and a response older than
    one already applied is dropped, as is anything resolving after teardown.
    """

    def __init__(
        self,
        initial_holdings: Sequence[Holding],
        fetch: Callable[[], List[Holding]],
    ) -> None:
        self._fetch = fetch
        self._holdings: List[Holding] = list(initial_holdings)
        self._error: Optional[str] = None
        self._lock = threading.Lock()
        self._issued = 0
        self._applied = 0
        self._closed = False
        self._handle: PollHandle | None = None
        self._table_cache: tuple[List[Holding], PortfolioTable] | None = None

    @property
    def holdings(self) -> List[Holding]:
        return self._holdings

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def closed(self) -> bool:
        return self._closed

    def mount(
        self,
        scheduler: BaseScheduler,
        interval_seconds: float = DEFAULT_REFRESH_SECONDS,
        job_id: str | None = None,
    ) -> PollHandle:
        """Start the refresh timer on ``scheduler``."""

        with self._lock:
            if self._closed:
                raise RuntimeError("Cannot mount a presenter after teardown")
            if self._handle is not None:
                raise RuntimeError("Presenter is already mounted")
            self._handle = start_polling(scheduler, self.poll_once, interval_seconds, job_id)
            return self._handle

    def poll_once(self) -> None:
        """Run one refresh tick."""

        with self._lock:
            if self._closed:
                return
            self._issued += 1
            ticket = self._issued

        try:
            holdings = self._fetch()
        except Exception:
            self._apply(ticket, None)
        else:
            self._apply(ticket, holdings)

    def _apply(self, ticket: int, holdings: Optional[List[Holding]]) -> bool:
        with self._lock:
            if self._closed or ticket < self._applied:
                return False
            self._applied = ticket
            if holdings is None:
                self._error = FETCH_ERROR_MESSAGE
            else:
                self._holdings = list(holdings)
                self._error = None
            return True

    def teardown(self) -> None:
        """Stop the timer and ignore any fetch still in flight."""

        with self._lock:
            if self._closed:
                return
            self._closed = True
            handle = self._handle
        if handle is not None:
            handle.cancel()

    def _snapshot(self) -> tuple[List[Holding], Optional[str], PortfolioTable]:
        with self._lock:
            holdings, error, cached = self._holdings, self._error, self._table_cache
        if cached is not None and cached[0] is holdings:
            return holdings, error, cached[1]
        table = build_table(holdings)
        with self._lock:
            if self._holdings is holdings:
                self._table_cache = (holdings, table)
        return holdings, error, table

    @property
    def table(self) -> PortfolioTable:
        return self._snapshot()[2]

    def render(self) -> str:
        holdings, error, table = self._snapshot()
        return render_table(holdings, error, table)


__all__ = [
    "DEFAULT_REFRESH_SECONDS",
    "FETCH_ERROR_MESSAGE",
    "PollHandle",
    "PortfolioPresenter",
    "start_polling",
]
