"""Tests for the self-refreshing portfolio presenter."""
from __future__ import annotations

import threading
import time

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from portfolio_dashboard.client import PortfolioFetchError
from portfolio_dashboard.presenter import (
    FETCH_ERROR_MESSAGE,
    PollHandle,
    PortfolioPresenter,
    start_polling,
)
from portfolio_dashboard.rendering import NO_DATA_MESSAGE


def _failing_fetch():
    raise PortfolioFetchError("Portfolio endpoint returned status 500", status_code=500)


@pytest.fixture
def scheduler():
    sched = BackgroundScheduler()
    sched.start()
    yield sched
    sched.shutdown(wait=False)


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.01)
    return True


class TestPollOnce:
    """State transitions for a single tick."""

    def test_success_replaces_holdings_and_clears_error(self, make_holding):
        fresh = [make_holding("New")]
        responses = iter([PortfolioFetchError("down"), fresh])

        def fetch():
            item = next(responses)
            if isinstance(item, Exception):
                raise item
            return item

        presenter = PortfolioPresenter([make_holding("Old")], fetch)

        presenter.poll_once()
        assert presenter.error == FETCH_ERROR_MESSAGE

        presenter.poll_once()
        assert presenter.error is None
        assert presenter.holdings == fresh

    def test_failure_keeps_previous_holdings(self, make_holding):
        initial = [make_holding("Old")]
        presenter = PortfolioPresenter(initial, _failing_fetch)

        presenter.poll_once()

        assert presenter.holdings == initial
        assert presenter.error == FETCH_ERROR_MESSAGE

    def test_unexpected_exception_does_not_escape(self):
        """Any fetch failure is turned into the warning banner."""

        def fetch():
            raise KeyError("portfolio")

        presenter = PortfolioPresenter([], fetch)
        presenter.poll_once()

        assert presenter.error == FETCH_ERROR_MESSAGE

    def test_stale_response_is_discarded(self, make_holding):
        """A slow earlier tick cannot overwrite a newer result."""
        old, new = [make_holding("Old")], [make_holding("New")]
        first_started = threading.Event()
        release = threading.Event()

        def fetch():
            if not first_started.is_set():
                first_started.set()
                release.wait(5)
                return old
            return new

        presenter = PortfolioPresenter([], fetch)
        slow = threading.Thread(target=presenter.poll_once)
        slow.start()
        assert first_started.wait(5)

        presenter.poll_once()
        release.set()
        slow.join(5)

        assert presenter.holdings == new

    def test_in_flight_result_dropped_after_teardown(self, make_holding):
        started = threading.Event()
        release = threading.Event()

        def fetch():
            started.set()
            release.wait(5)
            return [make_holding("Late")]

        presenter = PortfolioPresenter([], fetch)
        tick = threading.Thread(target=presenter.poll_once)
        tick.start()
        assert started.wait(5)

        presenter.teardown()
        release.set()
        tick.join(5)

        assert presenter.holdings == []
        assert presenter.error is None

    def test_no_fetch_after_teardown(self):
        calls = []
        presenter = PortfolioPresenter([], lambda: calls.append(1) or [])

        presenter.teardown()
        presenter.poll_once()

        assert calls == []


class TestRender:
    def test_render_reflects_state(self, make_holding):
        presenter = PortfolioPresenter([], _failing_fetch)
        assert NO_DATA_MESSAGE in presenter.render()

        presenter.poll_once()
        html = presenter.render()
        assert FETCH_ERROR_MESSAGE in html
        assert NO_DATA_MESSAGE not in html

    def test_table_is_reused_until_holdings_change(self, make_holding):
        presenter = PortfolioPresenter([make_holding("One")], lambda: [make_holding("Two")])

        first = presenter.table
        assert presenter.table is first

        presenter.poll_once()
        assert presenter.table is not first
        assert list(presenter.table.groups["A"].holdings)[0].particulars == "Two"


class TestTimer:
    """Scheduling and teardown."""

    def test_polls_on_interval(self, scheduler):
        calls = []
        presenter = PortfolioPresenter([], lambda: calls.append(1) or [])

        presenter.mount(scheduler, interval_seconds=0.05)
        try:
            assert _wait_for(lambda: len(calls) >= 2)
        finally:
            presenter.teardown()

    def test_no_fetches_after_teardown(self, scheduler):
        """Once torn down, no further ticks fetch however long we wait."""
        calls = []
        presenter = PortfolioPresenter([], lambda: calls.append(1) or [])
        handle = presenter.mount(scheduler, interval_seconds=0.05)
        assert _wait_for(lambda: len(calls) >= 1)

        presenter.teardown()
        time.sleep(0.1)
        seen = len(calls)
        time.sleep(0.4)

        assert len(calls) == seen
        assert handle.cancelled
        assert scheduler.get_job(handle.job_id) is None

    def test_cannot_mount_twice(self, scheduler):
        presenter = PortfolioPresenter([], lambda: [])
        presenter.mount(scheduler, interval_seconds=60)
        try:
            with pytest.raises(RuntimeError):
                presenter.mount(scheduler, interval_seconds=60)
        finally:
            presenter.teardown()

    def test_cannot_mount_after_teardown(self, scheduler):
        presenter = PortfolioPresenter([], lambda: [])
        presenter.teardown()

        with pytest.raises(RuntimeError):
            presenter.mount(scheduler)


class TestPollHandle:
    def test_cancel_is_idempotent(self, scheduler):
        handle = start_polling(scheduler, lambda: None, 60)

        assert handle.cancel() is True
        assert handle.cancel() is False
        assert scheduler.get_job(handle.job_id) is None

    def test_cancel_tolerates_missing_job(self, scheduler):
        handle = PollHandle(scheduler, "never-scheduled")

        assert handle.cancel() is True
