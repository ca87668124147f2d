"""Tests for the mounted view registry."""
from __future__ import annotations

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from portfolio_dashboard.views import ViewRegistry


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    # Never started: jobs stay pending so nothing fires during the test.
    scheduler = BackgroundScheduler()
    views = ViewRegistry(
        scheduler, lambda: [], interval_seconds=15, idle_timeout_seconds=120, clock=clock
    )
    yield views
    views.close()


class TestViewRegistry:
    def test_mount_schedules_refresh(self, registry, make_holding):
        view = registry.mount([make_holding("One")])

        assert registry.get(view.view_id) is view
        assert registry.scheduler.get_job(view.handle.job_id) is not None
        assert view.presenter.holdings[0].particulars == "One"

    def test_unmount_tears_down_presenter(self, registry):
        view = registry.mount([])

        assert registry.unmount(view.view_id) is True
        assert view.presenter.closed
        assert registry.scheduler.get_job(view.handle.job_id) is None
        assert registry.get(view.view_id) is None

    def test_unmount_unknown_view(self, registry):
        assert registry.unmount("missing") is False

    def test_sweep_removes_idle_views(self, registry, clock):
        """Views not read within the idle timeout are torn down."""
        idle = registry.mount([])
        clock.now = 100.0
        active = registry.mount([])
        clock.now = 150.0
        registry.get(active.view_id)

        removed = registry.sweep(now=200.0)

        assert removed == 1
        assert idle.presenter.closed
        assert not active.presenter.closed
        assert len(registry) == 1

    def test_close_tears_down_everything(self, registry):
        views = [registry.mount([]) for _ in range(3)]

        registry.close()

        assert len(registry) == 0
        assert all(view.presenter.closed for view in views)
