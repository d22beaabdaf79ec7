"""Demonstration of the cron ticker.

This example demonstrates:
1. Matching schedules against a fixed point in time
2. Registering and removing jobs
3. Running a tick by hand, including a failing callback
4. Running the real once-a-minute loop

Run this example:
    python examples/ticker_demo.py
"""

import time
from datetime import datetime

from cron_ticker import CronTicker, fires, next_fire_times, setup_logging
from cron_ticker.core.config import LoggingConfig

# ============================================================================
# Example Task Functions
# ============================================================================


def simple_task() -> None:
    """A simple task that prints a message."""
    print(f"[{datetime.now().strftime('%H:%M:%S')}] Simple task executed!")


def failing_task() -> None:
    """A task that raises an exception."""
    raise ValueError("Intentional error for demonstration")


# ============================================================================
# Demo Functions
# ============================================================================


def demo_matching() -> None:
    """Demonstrate schedule matching."""
    print("\n" + "=" * 70)
    print("Demo 1: Schedule Matching (2020-05-01 10:00 was a Friday)")
    print("=" * 70)

    friday = datetime(2020, 5, 1, 10, 0)
    for schedule in ["0-4 * * * *", "* * 2 * fri", "1-59 * * * *", "* 4-15/5 * * *"]:
        print(f"  {schedule!r:20} fires: {fires(friday, schedule)}")

    print("\nNext three runs of '0 9 * * 1-5':")
    for run_time in next_fire_times("0 9 * * 1-5", start=friday, count=3):
        print(f"  {run_time:%a %Y-%m-%d %H:%M}")


def demo_manual_tick() -> None:
    """Demonstrate one tick with a failing job."""
    print("\n" + "=" * 70)
    print("Demo 2: Manual Tick")
    print("=" * 70)

    ticker = CronTicker()
    ticker.add("* * * * *", simple_task)
    broken_id = ticker.add("* * * * *", failing_task)
    ticker.add("0 0 1 1 *", simple_task)

    for result in ticker.run_due(datetime.now()):
        status = "ok" if result.success else f"failed ({result.error_message})"
        print(f"  job {result.job_id}: {status}")

    removed = ticker.remove_by_id(broken_id)
    print(f"\nRemoved job {removed.id}; {len(ticker.registry)} job(s) left")
    print(f"Metrics: {ticker.metrics.get_metrics()}")


def demo_loop() -> None:
    """Demonstrate the real loop for a little over a minute."""
    print("\n" + "=" * 70)
    print("Demo 3: Once-a-Minute Loop")
    print("=" * 70)

    ticker = CronTicker()
    ticker.add("* * * * *", simple_task)
    ticker.start()
    print(f"\nFirst tick done, next tick at {ticker.next_tick_at:%H:%M:%S}")

    print("Waiting 65 seconds to see the next tick...")
    time.sleep(65)

    ticker.shutdown()
    print("Ticker stopped")


def main() -> None:
    setup_logging(LoggingConfig(level="INFO"))
    demo_matching()
    demo_manual_tick()
    demo_loop()


if __name__ == "__main__":
    main()
