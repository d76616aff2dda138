"""
Scheduling for Lumina Grid
Timer callbacks behind the tkinter after()/after_cancel() interface

The sequencer clock and the frame driver only need something with
after(delay_ms, callback) and after_cancel(id). In the GUI that is the
Tk root itself (callbacks run on the Tk thread); headless code uses
ThreadScheduler, which runs each callback on a short-lived timer thread.
"""

import itertools
import logging
import threading
from typing import Callable, Dict

logger = logging.getLogger(__name__)


class ThreadScheduler:
    """
    after()/after_cancel() on background threads

    Each call gets its own daemon threading.Timer. A callback that has
    been cancelled never runs, even if its timer already fired.
    """

    def __init__(self):
        self._timers: Dict[str, threading.Timer] = {}
        self._lock = threading.Lock()
        self._counter = itertools.count(1)

    def after(self, delay_ms: int, callback: Callable, *args) -> str:
        """Run callback(*args) after delay_ms milliseconds; returns an id"""
        ident = f"after#{next(self._counter)}"

        def run():
            with self._lock:
                if self._timers.pop(ident, None) is None:
                    return  # Cancelled
            try:
                callback(*args)
            except Exception:
                logger.exception("Scheduled callback %s failed", ident)

        timer = threading.Timer(max(0, delay_ms) / 1000.0, run)
        timer.daemon = True
        with self._lock:
            self._timers[ident] = timer
        timer.start()
        return ident

    def after_cancel(self, ident: str):
        """Cancel a pending callback (unknown ids are ignored)"""
        with self._lock:
            timer = self._timers.pop(ident, None)
        if timer is not None:
            timer.cancel()

    def cancel_all(self):
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._timers)
