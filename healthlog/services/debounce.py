"""
Keyed, cancelable timers for coalescing bursts of work.

``schedule`` replaces any pending action for the same key, so a burst of
calls collapses into one run of the last action after the quiet period.
Once an action has started it is never cancelled; it runs as its own task
and a later timer for the same key may overlap with it.
"""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)

Action = Callable[[], Awaitable[None]]


class Debouncer:
    """Run the latest scheduled action per key after ``delay`` seconds of quiet."""

    def __init__(self) -> None:
        self.logger = logger.bind(component="debouncer")
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._actions: dict[str, Action] = {}
        self._in_flight: set[asyncio.Task[None]] = set()

    def schedule(self, key: str, delay: float, action: Action) -> None:
        """
        (Re)start the timer for ``key``.

        Outside a running event loop there is nothing to drive the timer, so
        the action stays pending until ``flush`` is awaited.
        """
        self.cancel(key)
        self._actions[key] = action
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timers[key] = loop.call_later(delay, self._fire, key)

    def cancel(self, key: str) -> bool:
        """Drop the pending action for ``key``. Returns whether one was pending."""
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        return self._actions.pop(key, None) is not None

    def cancel_all(self) -> None:
        for key in list(self._actions):
            self.cancel(key)

    def is_pending(self, key: str) -> bool:
        return key in self._actions

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def _fire(self, key: str) -> None:
        self._timers.pop(key, None)
        action = self._actions.pop(key, None)
        if action is None:
            return
        task = asyncio.get_running_loop().create_task(action(), name=f"debounced:{key}")
        self._in_flight.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: "asyncio.Task[None]") -> None:
        self._in_flight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error(
                "debounced_action_failed", task=task.get_name(), error=str(task.exception())
            )

    async def flush(self) -> None:
        """Fire every pending action now and wait for all running actions to finish."""
        for key in list(self._actions):
            timer = self._timers.pop(key, None)
            if timer is not None:
                timer.cancel()
            self._fire(key)
        while self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
