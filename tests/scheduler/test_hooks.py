"""Tests for callback execution hooks."""

from datetime import datetime

from cron_ticker.core.exceptions import CallbackFailure
from cron_ticker.scheduler.hooks import (
    HookPriority,
    HookRegistry,
    JobExecutionContext,
    JobExecutionResult,
    JobHook,
    LoggingHook,
    MetricsHook,
)


def make_context(job_id=1):
    now = datetime(2020, 5, 1, 10, 0)
    return JobExecutionContext(job_id=job_id, schedule="* * * * *", tick_time=now, start_time=now)


def make_result(job_id=1, success=True, duration=0.5):
    now = datetime(2020, 5, 1, 10, 0)
    error = None if success else CallbackFailure(job_id, ValueError("boom"))
    return JobExecutionResult(
        job_id=job_id,
        schedule="* * * * *",
        success=success,
        start_time=now,
        end_time=now,
        duration=duration,
        error=error,
    )


class RecordingHook(JobHook):
    def __init__(self, name, calls, priority=HookPriority.NORMAL, allow=True):
        self.name = name
        self.calls = calls
        self.priority = priority
        self.allow = allow

    def before_job_execution(self, context):
        self.calls.append(("before", self.name))
        return self.allow

    def after_job_execution(self, context, result):
        self.calls.append(("after", self.name))


class BrokenHook(JobHook):
    def before_job_execution(self, context):
        raise RuntimeError("hook broke")

    def after_job_execution(self, context, result):
        raise RuntimeError("hook broke")


class TestHookRegistry:
    def test_hooks_run_in_priority_order(self):
        calls = []
        registry = HookRegistry()
        registry.register(RecordingHook("low", calls, HookPriority.LOW))
        registry.register(RecordingHook("highest", calls, HookPriority.HIGHEST))

        registry.before_execution(make_context())

        assert calls == [("before", "highest"), ("before", "low")]

    def test_veto_stops_later_hooks(self):
        calls = []
        registry = HookRegistry()
        registry.register(RecordingHook("veto", calls, HookPriority.HIGH, allow=False))
        registry.register(RecordingHook("later", calls, HookPriority.LOW))

        assert registry.before_execution(make_context()) is False
        assert calls == [("before", "veto")]

    def test_broken_hook_is_isolated(self):
        calls = []
        registry = HookRegistry()
        registry.register(BrokenHook())
        registry.register(RecordingHook("after-broken", calls, HookPriority.LOWEST))

        assert registry.before_execution(make_context()) is True
        registry.after_execution(make_context(), make_result())
        assert calls == [("before", "after-broken"), ("after", "after-broken")]

    def test_unregister(self):
        registry = HookRegistry()
        hook = LoggingHook()
        registry.register(hook)
        assert registry.unregister(hook) is True
        assert registry.unregister(hook) is False
        assert registry.get_hooks() == []


class TestMetricsHook:
    def test_counts_and_rates(self):
        hook = MetricsHook()
        context = make_context(job_id=7)
        hook.after_job_execution(context, make_result(job_id=7, duration=1.0))
        hook.after_job_execution(context, make_result(job_id=7, success=False, duration=3.0))

        metrics = hook.get_metrics(7)

        assert metrics["execution_count"] == 2
        assert metrics["success_count"] == 1
        assert metrics["failure_count"] == 1
        assert metrics["success_rate"] == 50.0
        assert metrics["average_duration"] == 2.0

    def test_unknown_job(self):
        assert MetricsHook().get_metrics(99) == {}


class TestResult:
    def test_error_message(self):
        assert make_result(success=False).error_message == "boom"
        assert make_result().error_message is None

    def test_to_dict(self):
        data = make_result(success=False).to_dict()
        assert data["success"] is False
        assert data["error_message"] == "boom"
        assert data["start_time"] == "2020-05-01T10:00:00"
