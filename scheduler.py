"""
Deferred callbacks on the Qt event loop.

Everything that looks asynchronous in the app (layout resets, debounced
re-apply, restore-then-relayout) is a zero-argument callback scheduled to
run once after a fixed delay. ``TaskSlots`` owns those tasks per logical
slot so a newer request supersedes the pending one and teardown can cancel
all of them.
"""

import logging

from PySide6.QtCore import Qt, QTimer

logger = logging.getLogger(__name__)


class ScheduledTask:
    def __init__(self, callback, canceller=None):
        self._callback = callback
        self._canceller = canceller
        self.cancelled = False
        self.fired = False

    @property
    def pending(self):
        return not (self.cancelled or self.fired)

    def cancel(self):
        if not self.pending:
            return
        self.cancelled = True
        if self._canceller is not None:
            self._canceller()

    def fire(self):
        if not self.pending:
            return
        self.fired = True
        self._callback()


class QtScheduler:
    """Schedules tasks with single-shot QTimers."""

    def schedule(self, delay_ms, callback, low_priority=False):
        timer = QTimer()
        timer.setSingleShot(True)
        # Coarse timers may be coalesced by Qt, which is fine for low priority work.
        timer.setTimerType(Qt.CoarseTimer if low_priority else Qt.PreciseTimer)
        task = ScheduledTask(callback, timer.stop)
        task.timer = timer  # keep the QTimer alive as long as the task
        timer.timeout.connect(task.fire)
        timer.start(int(delay_ms))
        return task


class TaskSlots:
    """
    Owning collection of scheduled tasks, at most one pending per slot.

    Callbacks run guarded: an exception is logged and never reaches the
    event loop. After ``close()`` every request is ignored.
    """

    def __init__(self, scheduler):
        self._scheduler = scheduler
        self._tasks = {}
        self.closed = False

    def schedule(self, slot, delay_ms, callback, low_priority=False):
        if self.closed:
            logger.debug("Ignoring '%s' request after teardown", slot)
            return None
        self.cancel(slot)
        task = None

        def _run():
            if self._tasks.get(slot) is task:
                del self._tasks[slot]
            if self.closed:
                return
            try:
                callback()
            except Exception:
                logger.exception("Scheduled '%s' callback failed", slot)

        task = self._scheduler.schedule(delay_ms, _run, low_priority=low_priority)
        self._tasks[slot] = task
        return task

    def pending(self, slot):
        task = self._tasks.get(slot)
        return task is not None and task.pending

    def cancel(self, slot):
        task = self._tasks.pop(slot, None)
        if task is not None:
            task.cancel()

    def cancel_all(self):
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()

    def close(self):
        self.cancel_all()
        self.closed = True
