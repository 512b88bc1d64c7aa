"""
Tests for the per-monitor scheduler registry.
"""

import asyncio
import time

import pytest

from uptime_monitor.exceptions import InvalidIntervalError, SchedulerStoppedError
from uptime_monitor.monitoring.scheduler import MonitorScheduler

from conftest import FakeStore, make_monitor


class RecordingRunner:
    def __init__(self):
        self.calls = []

    async def __call__(self, monitor):
        self.calls.append(monitor)


@pytest.fixture
async def scheduler():
    runner = RecordingRunner()
    sched = MonitorScheduler(FakeStore(), runner)
    sched.runner_calls = runner.calls
    yield sched
    await sched.stop()


class TestRegistry:

    async def test_add_installs_one_job(self, scheduler):
        await scheduler.add_monitor(make_monitor(1))

        assert scheduler.job_ids() == [1]
        assert scheduler.has_job(1)

    async def test_add_existing_id_replaces_and_cancels_old_timer(self, scheduler):
        await scheduler.add_monitor(make_monitor(1, interval=60))
        old_task = scheduler.get_job(1).task

        await scheduler.add_monitor(make_monitor(1, interval=30, name="renamed"))

        job = scheduler.get_job(1)
        assert scheduler.job_ids() == [1]
        assert old_task.cancelled()
        assert job.task is not old_task
        assert not job.task.done()
        assert job.interval == 30
        assert job.monitor.name == "renamed"

    async def test_remove_cancels_timer(self, scheduler):
        await scheduler.add_monitor(make_monitor(1))
        task = scheduler.get_job(1).task

        await scheduler.remove_monitor(1)

        assert scheduler.job_ids() == []
        assert task.cancelled()

    async def test_remove_unknown_id_is_noop(self, scheduler):
        await scheduler.add_monitor(make_monitor(1))

        await scheduler.remove_monitor(999)

        assert scheduler.job_ids() == [1]

    @pytest.mark.parametrize("interval", [0, -5])
    async def test_non_positive_interval_rejected(self, scheduler, interval):
        await scheduler.add_monitor(make_monitor(1, interval=60))
        existing = scheduler.get_job(1).task

        with pytest.raises(InvalidIntervalError):
            await scheduler.add_monitor(make_monitor(1, interval=interval))

        assert scheduler.get_job(1).task is existing
        assert not existing.done()

    async def test_add_after_stop_is_rejected(self, scheduler):
        await scheduler.stop()

        with pytest.raises(SchedulerStoppedError):
            await scheduler.add_monitor(make_monitor(1))

    async def test_concurrent_adds_of_same_id_leave_one_job(self, scheduler):
        await asyncio.gather(
            *(scheduler.add_monitor(make_monitor(1, interval=10 + i)) for i in range(5))
        )

        assert scheduler.job_ids() == [1]
        live = [t for t in asyncio.all_tasks() if t.get_name() == "monitor-timer-1" and not t.done()]
        assert len(live) == 1


class TestLifecycle:

    async def test_start_schedules_active_monitors_and_skips_invalid(self):
        store = FakeStore([
            make_monitor(1),
            make_monitor(2, interval=0),
            make_monitor(3, active=False),
            make_monitor(4),
        ])
        sched = MonitorScheduler(store, RecordingRunner())

        await sched.start()
        try:
            assert sched.is_running
            assert sched.job_ids() == [1, 4]
        finally:
            await sched.stop()

        assert not sched.is_running
        assert sched.job_ids() == []


class TestTicks:

    async def test_fires_at_interval(self, scheduler):
        await scheduler.add_monitor(make_monitor(1, interval=0.05))

        await asyncio.sleep(0.18)

        assert len(scheduler.runner_calls) >= 2
        assert all(m.id == 1 for m in scheduler.runner_calls)
        assert scheduler.get_job(1).run_count >= 2

    async def test_first_fire_waits_one_interval(self, scheduler):
        await scheduler.add_monitor(make_monitor(1, interval=0.2))

        await asyncio.sleep(0.05)

        assert scheduler.runner_calls == []

    async def test_overlapping_tick_is_skipped(self):
        release = asyncio.Event()
        started = []

        async def slow_runner(monitor):
            started.append(monitor.id)
            await release.wait()

        sched = MonitorScheduler(FakeStore(), slow_runner)
        await sched.add_monitor(make_monitor(1, interval=0.02))
        try:
            await asyncio.sleep(0.15)

            assert started == [1]
            assert sched.in_flight() == [1]
            assert sched.get_job(1).skipped_ticks >= 1
        finally:
            release.set()
            await sched.stop()

    async def test_replaced_job_waits_for_old_in_flight_tick(self):
        release = asyncio.Event()
        first_tick = asyncio.Event()
        started = []

        async def blocking_runner(monitor):
            started.append(monitor.name)
            first_tick.set()
            await release.wait()

        sched = MonitorScheduler(FakeStore(), blocking_runner)
        await sched.add_monitor(make_monitor(1, interval=0.02, name="old"))
        try:
            await asyncio.wait_for(first_tick.wait(), timeout=1)

            await sched.add_monitor(make_monitor(1, interval=0.02, name="new"))
            await asyncio.sleep(0.15)

            assert started == ["old"]
            assert sched.in_flight() == [1]
            assert sched.get_job(1).monitor.name == "new"
            assert sched.get_job(1).skipped_ticks >= 1
        finally:
            release.set()
            await sched.stop()

    async def test_runner_error_is_counted_and_timer_survives(self):
        async def failing_runner(monitor):
            raise RuntimeError("boom")

        sched = MonitorScheduler(FakeStore(), failing_runner)
        await sched.add_monitor(make_monitor(1, interval=0.03))
        try:
            await asyncio.sleep(0.12)

            job = sched.get_job(1)
            assert job.error_count >= 2
            assert job.run_count == 0
            assert not job.task.done()
        finally:
            await sched.stop()

    async def test_missed_fires_are_skipped_not_replayed(self, scheduler):
        await scheduler.add_monitor(make_monitor(1, interval=0.05))

        # Block the loop across several fire times
        time.sleep(0.3)
        await asyncio.sleep(0.02)

        job = scheduler.get_job(1)
        assert job.missed_fires >= 3
        assert len(scheduler.runner_calls) <= 2

    async def test_stop_cancels_in_flight_ticks(self):
        cancelled = asyncio.Event()

        async def hanging_runner(monitor):
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        sched = MonitorScheduler(FakeStore(), hanging_runner)
        await sched.add_monitor(make_monitor(1, interval=0.02))
        await asyncio.sleep(0.05)

        await sched.stop()

        assert cancelled.is_set()
        assert sched.in_flight() == []

    async def test_job_stats(self, scheduler):
        await scheduler.add_monitor(make_monitor(2))
        await scheduler.add_monitor(make_monitor(1))

        stats = scheduler.get_job_stats()

        assert [s["monitor_id"] for s in stats] == [1, 2]
        assert stats[0]["interval_seconds"] == 60
        assert stats[0]["last_run"] is None
