"""Registry of dashboard views currently open in a browser."""
from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from apscheduler.schedulers.base import BaseScheduler

from .models import Holding
from .presenter import PollHandle, PortfolioPresenter

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class MountedView:
    """A presenter together with its refresh timer."""

    view_id: str
    presenter: PortfolioPresenter
    handle: PollHandle
    last_seen: float


class ViewRegistry:
    """Mounts one presenter per page load and tears down abandoned ones."""

    def __init__(
        self,
        scheduler: BaseScheduler,
        fetch: Callable[[], List[Holding]],
        interval_seconds: float,
        idle_timeout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.scheduler = scheduler
        self.fetch = fetch
        self.interval_seconds = interval_seconds
        self.idle_timeout_seconds = idle_timeout_seconds
        self._clock = clock
        self._views: dict[str, MountedView] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._views)

    def mount(self, holdings: Sequence[Holding]) -> MountedView:
        view_id = uuid.uuid4().hex
        presenter = PortfolioPresenter(holdings, self.fetch)
        handle = presenter.mount(
            self.scheduler, self.interval_seconds, job_id=f"portfolio-view-{view_id}"
        )
        view = MountedView(view_id, presenter, handle, self._clock())
        with self._lock:
            self._views[view_id] = view
        LOGGER.debug("Mounted view %s with %d holdings", view_id, len(holdings))
        return view

    def get(self, view_id: str) -> Optional[MountedView]:
        """Return the view and mark it as recently seen."""

        with self._lock:
            view = self._views.get(view_id)
            if view is not None:
                view.last_seen = self._clock()
        return view

    def unmount(self, view_id: str) -> bool:
        with self._lock:
            view = self._views.pop(view_id, None)
        if view is None:
            return False
        view.presenter.teardown()
        LOGGER.debug("Unmounted view %s", view_id)
        return True

    def sweep(self, now: float | None = None) -> int:
        """Tear down views not seen within the idle timeout."""

        now = self._clock() if now is None else now
        with self._lock:
            stale = [
                view_id
                for view_id, view in self._views.items()
                if now - view.last_seen > self.idle_timeout_seconds
            ]
        removed = sum(1 for view_id in stale if self.unmount(view_id))
        if removed:
            LOGGER.info("Tore down %d idle dashboard views", removed)
        return removed

    def close(self) -> None:
        with self._lock:
            view_ids = list(self._views)
        for view_id in view_ids:
            self.unmount(view_id)


__all__ = ["MountedView", "ViewRegistry"]
