"""
Render Loop for Lumina Grid
Frame driver that advances the effect simulation while effects are live
"""

import logging
import threading
from typing import Callable, List

from .effects import EffectSimulation

logger = logging.getLogger(__name__)


class FrameDriver:
    """
    Self-terminating frame loop

    Runs independently of the sequencer clock. Each frame steps the
    simulation once and notifies frame listeners (the display redraw).
    When the simulation drains the driver stops scheduling itself; the
    next inserted effect starts it again.
    """

    DEFAULT_INTERVAL_MS = 16  # ~60 fps

    def __init__(self, simulation: EffectSimulation, scheduler,
                 interval_ms: int = DEFAULT_INTERVAL_MS):
        self.simulation = simulation
        self.scheduler = scheduler
        self.interval_ms = max(1, int(interval_ms))

        self.frame_count = 0
        self._frame_id = None
        self._frame_gen = 0
        self._disposed = False
        self._lock = threading.Lock()
        self._frame_listeners: List[Callable[[], None]] = []

        simulation.add_insert_listener(lambda effect: self.ensure_running())

    @property
    def is_running(self) -> bool:
        return self._frame_id is not None

    def add_frame_listener(self, listener: Callable[[], None]):
        """listener() is called after every frame"""
        self._frame_listeners.append(listener)

    def ensure_running(self):
        """Schedule a frame unless one is already pending"""
        with self._lock:
            if self._disposed or self._frame_id is not None:
                return
            self._schedule_frame()

    def stop(self):
        """Cancel the pending frame, if any"""
        with self._lock:
            self._frame_gen += 1
            if self._frame_id is not None:
                self.scheduler.after_cancel(self._frame_id)
                self._frame_id = None

    def dispose(self):
        """Stop for good; later insertions no longer restart the loop"""
        with self._lock:
            self._disposed = True
        self.stop()

    def _schedule_frame(self):
        self._frame_gen += 1
        self._frame_id = self.scheduler.after(self.interval_ms, self._frame, self._frame_gen)

    def _frame(self, gen: int):
        with self._lock:
            if gen != self._frame_gen:
                return
            self._frame_id = None
            if self._disposed:
                return

        remaining = self.simulation.step()
        self.frame_count += 1

        with self._lock:
            if remaining > 0 and not self._disposed and self._frame_id is None:
                self._schedule_frame()

        for listener in self._frame_listeners:
            listener()

        if remaining == 0:
            logger.debug("Frame driver idle after %d frames", self.frame_count)
