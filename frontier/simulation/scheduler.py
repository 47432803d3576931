"""Scheduler — fixed-period drivers on a single logical clock.

Each driver fires every ``period_ms`` of simulated wall time.  Drivers are
not phase-locked; when several come due inside one ``advance`` they fire in
due-time order (ties in registration order), and every callback runs to
completion before the next one starts.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class PeriodicTask:
    """A recurring driver.

    Attributes:
        name: Label used in logs and tests.
        period_ms: Interval between firings.
        callback: Tick body.
        next_due_ms: Clock time of the next firing.
        fired: Number of times the task has fired.
    """

    name: str
    period_ms: int
    callback: Callable[[], None]
    next_due_ms: int = 0
    fired: int = 0


class Scheduler:
    """Runs periodic tasks against a manually advanced clock."""

    def __init__(self) -> None:
        self.now_ms = 0
        self.tasks: list[PeriodicTask] = []
        self._before_step: list[Callable[[], None]] = []

    def every(
        self,
        name: str,
        period_ms: int,
        callback: Callable[[], None],
    ) -> PeriodicTask:
        """Register ``callback`` to fire every ``period_ms`` from now.

        Raises:
            ValueError: If the period is not positive.
        """
        if period_ms <= 0:
            msg = f"period must be positive, got {period_ms} for {name!r}"
            raise ValueError(msg)
        task = PeriodicTask(
            name=name,
            period_ms=period_ms,
            callback=callback,
            next_due_ms=self.now_ms + period_ms,
        )
        self.tasks.append(task)
        return task

    def before_each_step(self, callback: Callable[[], None]) -> None:
        """Register a hook that runs before every fired task."""
        self._before_step.append(callback)

    def advance(self, elapsed_ms: int) -> list[str]:
        """Move the clock forward, firing every task that comes due.

        Args:
            elapsed_ms: Simulated time to advance.

        Returns:
            Names of the tasks fired, in firing order.
        """
        target = self.now_ms + max(0, elapsed_ms)
        fired: list[str] = []
        while self.tasks:
            task = min(self.tasks, key=lambda t: t.next_due_ms)
            if task.next_due_ms > target:
                break
            self.now_ms = task.next_due_ms
            for hook in self._before_step:
                hook()
            task.callback()
            task.fired += 1
            task.next_due_ms += task.period_ms
            fired.append(task.name)
        self.now_ms = target
        return fired

    def clear(self) -> None:
        """Drop all tasks (session teardown)."""
        self.tasks.clear()
        self._before_step.clear()
