"""Tests for the minute ticker."""

import threading
import time
from datetime import datetime, timedelta

import pytest

from cron_ticker.core.config import TickerConfig
from cron_ticker.core.exceptions import CallbackFailure
from cron_ticker.scheduler import CronTicker, JobHook, JobRegistry


class EverySecondTicker(CronTicker):
    def next_tick_delay(self, now):
        return 1


@pytest.fixture
def ticker(friday_morning):
    ticker = CronTicker(clock=lambda: friday_morning)
    yield ticker
    ticker.shutdown()


class TestRunDue:
    def test_only_due_jobs_run(self, ticker, friday_morning):
        calls = []
        ticker.add("* * * * *", lambda: calls.append("every minute") or "done")
        ticker.add("1 * * * *", lambda: calls.append("minute one"))

        results = ticker.run_due(friday_morning)

        assert calls == ["every minute"]
        assert len(results) == 1
        assert results[0].job_id == 1
        assert results[0].success is True
        assert results[0].return_value == "done"
        assert results[0].error is None

    def test_no_due_jobs(self, ticker, friday_morning):
        ticker.add("1 * * * *", lambda: None)
        assert ticker.run_due(friday_morning) == []

    def test_failure_does_not_stop_siblings(self, ticker, friday_morning):
        calls = []

        def broken():
            raise ValueError("boom")

        ticker.add("* * * * *", broken)
        ticker.add("0 10 * * *", lambda: calls.append("ran"))

        results = ticker.run_due(friday_morning)

        assert calls == ["ran"]
        assert [result.job_id for result in results] == [1, 2]
        failed, succeeded = results
        assert failed.success is False
        assert isinstance(failed.error, CallbackFailure)
        assert failed.error.job_id == 1
        assert isinstance(failed.error.original_error, ValueError)
        assert failed.error_message == "boom"
        assert succeeded.success is True

    def test_callbacks_run_concurrently(self, ticker, friday_morning):
        barrier = threading.Barrier(3, timeout=5)
        for _ in range(3):
            ticker.add("* * * * *", barrier.wait)

        results = ticker.run_due(friday_morning)

        assert all(result.success for result in results)

    def test_max_workers_caps_callback_threads(self, friday_morning):
        threads = []
        ticker = CronTicker(config=TickerConfig(max_workers=1), clock=lambda: friday_morning)
        for _ in range(3):
            ticker.add("* * * * *", lambda: threads.append(threading.current_thread().name))

        results = ticker.run_due(friday_morning)

        assert all(result.success for result in results)
        assert len(threads) == 3
        assert len(set(threads)) == 1

    def test_async_callback_is_awaited(self, ticker, friday_morning):
        async def fetch():
            return 42

        ticker.add("* * * * *", fetch)

        results = ticker.run_due(friday_morning)

        assert results[0].success is True
        assert results[0].return_value == 42

    def test_async_callback_failure_is_captured(self, ticker, friday_morning):
        async def fetch():
            raise RuntimeError("unreachable")

        ticker.add("* * * * *", fetch)

        (result,) = ticker.run_due(friday_morning)

        assert result.success is False
        assert isinstance(result.error.original_error, RuntimeError)

    def test_failed_job_is_reconsidered_next_time(self, ticker, friday_morning):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise ConnectionError("first try fails")

        ticker.add("* * * * *", flaky)

        first = ticker.run_due(friday_morning)
        second = ticker.run_due(friday_morning + timedelta(minutes=1))

        assert first[0].success is False
        assert second[0].success is True
        assert len(attempts) == 2


class TestHooks:
    def test_metrics_are_collected(self, ticker, friday_morning):
        def broken():
            raise ValueError("boom")

        ok_id = ticker.add("* * * * *", lambda: None)
        broken_id = ticker.add("* * * * *", broken)

        ticker.run_due(friday_morning)
        ticker.run_due(friday_morning)

        assert ticker.metrics.get_metrics(ok_id)["success_count"] == 2
        assert ticker.metrics.get_metrics(broken_id)["failure_count"] == 2
        assert ticker.metrics.get_metrics(broken_id)["success_rate"] == 0.0

    def test_hook_can_skip_a_callback(self, ticker, friday_morning):
        calls = []

        class SkipEverything(JobHook):
            def before_job_execution(self, context):
                return False

            def after_job_execution(self, context, result):
                pass

        ticker.hooks.register(SkipEverything())
        ticker.add("* * * * *", lambda: calls.append(1))

        (result,) = ticker.run_due(friday_morning)

        assert calls == []
        assert result.skipped is True

    def test_hooks_disabled_by_config(self, friday_morning):
        config = TickerConfig(logging_hook_enabled=False, metrics_hook_enabled=False)
        ticker = CronTicker(config=config)
        assert ticker.hooks.get_hooks() == []
        assert ticker.metrics is None


class TestTicking:
    @pytest.mark.parametrize(("second", "delay"), [(0, 61), (30, 31), (59, 2)])
    def test_next_tick_delay(self, ticker, second, delay):
        assert ticker.next_tick_delay(datetime(2020, 5, 1, 10, 0, second)) == delay

    def test_next_tick_delay_honours_buffer(self):
        ticker = CronTicker(config=TickerConfig(buffer_seconds=5))
        assert ticker.next_tick_delay(datetime(2020, 5, 1, 10, 0, 10)) == 55

    def test_tick_uses_clock_when_not_started(self, ticker):
        calls = []
        ticker.add("0 10 1 may fri", lambda: calls.append(1))

        results = ticker.tick()

        assert len(results) == 1
        assert calls == [1]
        assert ticker.next_tick_at is None

    def test_start_runs_first_tick_and_schedules_next(self):
        calls = []
        ticker = CronTicker()
        ticker.add("* * * * *", lambda: calls.append(1))
        before = datetime.now()

        try:
            results = ticker.start()

            assert ticker.running is True
            assert len(results) == 1
            assert calls == [1]
            assert ticker.next_tick_at is not None
            assert ticker.next_tick_at.second == 1
            assert before < ticker.next_tick_at <= before + timedelta(seconds=62)
            assert ticker.start() == []
        finally:
            ticker.shutdown()

        assert ticker.running is False
        assert ticker.next_tick_at is None

    def test_start_disabled_raises(self):
        ticker = CronTicker(config=TickerConfig(enabled=False))
        with pytest.raises(RuntimeError):
            ticker.start()

    def test_shutdown_without_start_is_noop(self):
        CronTicker().shutdown()

    def test_ticks_continue_while_a_callback_is_outstanding(self):
        fast_calls = []
        slow_started = threading.Event()
        release = threading.Event()

        def slow():
            slow_started.set()
            release.wait(30)

        ticker = EverySecondTicker(config=TickerConfig(misfire_grace_time=1))
        ticker.add("* * * * *", lambda: fast_calls.append(1))

        try:
            ticker.start()
            ticker.add("* * * * *", slow)
            deadline = time.monotonic() + 15
            while len(fast_calls) < 7 and time.monotonic() < deadline:
                time.sleep(0.1)

            assert slow_started.is_set()
            assert not release.is_set()
            assert len(fast_calls) >= 7
        finally:
            release.set()
            ticker.shutdown()

    def test_scheduled_tick_does_not_wait_for_callbacks(self, friday_morning):
        release = threading.Event()
        finished = []

        def slow():
            release.wait(5)
            finished.append(1)

        ticker = CronTicker(clock=lambda: friday_morning)
        ticker.add("* * * * *", slow)
        ticker._running = True

        try:
            ticker._scheduled_tick()
            assert finished == []
        finally:
            release.set()
            ticker._running = False

    def test_restart_after_shutdown(self):
        ticker = CronTicker()
        ticker.start()
        ticker.shutdown()
        ticker.start()
        assert ticker.running is True
        ticker.shutdown()


class TestRegistryShortcuts:
    def test_shared_registry(self):
        registry = JobRegistry()
        ticker = CronTicker(registry=registry)

        job_id = ticker.add("* * * * *", print)

        assert registry.get(job_id) is not None
        assert ticker.remove_by_callback(print)[0].id == job_id
        assert len(registry) == 0

    def test_remove_shortcuts(self, ticker):
        first = ticker.add("0 * * * *", print)
        ticker.add("0 * * * *", len)
        ticker.add("5 * * * *", len)

        assert ticker.remove_by_id(first).id == first
        assert [job.id for job in ticker.remove_by_schedule("0 * * * *")] == [2]
        assert [job.id for job in ticker.remove_by(lambda job: True, limit=1)] == [3]
