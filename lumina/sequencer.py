"""
Sequencer Clock for Lumina Grid
Steps through the 16 columns at sixteenth-note resolution and fires active cells
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from .constants import COLS, DEFAULT_BPM, clamp_bpm, step_period_ms
from .effects import EffectSimulation
from .layers import LayerConfig
from .pattern_grid import PatternGrid

logger = logging.getLogger(__name__)


class SequencerClock:
    """
    Stopped -> Running -> Stopped step clock

    While running, a timer on the scheduler fires every
    60000 / bpm / 4 ms. Each tick moves to the next column and, for
    every layer, plays every active cell in that column and spawns one
    visual effect of the layer's archetype there.

    The timer chain is drift-corrected: each tick is scheduled against
    an absolute deadline on the monotonic clock rather than "period
    from now", so callback latency does not accumulate.
    """

    def __init__(self, grid: PatternGrid, layers: List[LayerConfig], synthesizer,
                 effects: EffectSimulation, scheduler,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            grid: Pattern store read on every tick
            layers: Layer configuration (kind, octave, volume, archetype)
            synthesizer: Object with trigger(layer, row)
            effects: Effect simulation receiving one effect per fired cell
            scheduler: Object with after(ms, callback) / after_cancel(id)
            clock: Monotonic time source in seconds
        """
        self.grid = grid
        self.layers = layers
        self.synthesizer = synthesizer
        self.effects = effects
        self.scheduler = scheduler
        self._clock = clock

        self.bpm = float(DEFAULT_BPM)
        self.current_column = -1
        self.is_running = False

        self._timer_id = None
        self._timer_gen = 0
        self._next_deadline: Optional[float] = None
        self._step_listeners: List[Callable[[int], None]] = []
        self._lock = threading.RLock()

    @property
    def period_ms(self) -> float:
        """Milliseconds per step at the current tempo"""
        return step_period_ms(self.bpm)

    def add_step_listener(self, listener: Callable[[int], None]):
        """listener(column) is called after every tick and on stop (-1)"""
        self._step_listeners.append(listener)

    # ============ Transport ============

    def start(self):
        """Start stepping; the first tick lands on column 0 after one period"""
        with self._lock:
            if self.is_running:
                return
            self.is_running = True
            self._next_deadline = self._clock() + self.period_ms / 1000.0
            self._schedule_next()
        logger.info("Sequencer started at %.0f BPM", self.bpm)

    def stop(self):
        """Stop stepping and clear the playhead (column -1)"""
        with self._lock:
            was_running = self.is_running
            self.is_running = False
            self._cancel_timer()
            self.current_column = -1
        if was_running:
            logger.info("Sequencer stopped")
        self._notify(-1)

    def toggle(self) -> bool:
        """Play/pause; returns the new running state"""
        if self.is_running:
            self.stop()
        else:
            self.start()
        return self.is_running

    def set_tempo(self, bpm: float) -> float:
        """
        Set tempo, clamped to 60-240 BPM

        While running the timer is torn down and recreated so the new
        period applies from the next tick.

        Returns:
            The effective tempo
        """
        with self._lock:
            self.bpm = clamp_bpm(bpm)
            if self.is_running:
                self._cancel_timer()
                self._next_deadline = self._clock() + self.period_ms / 1000.0
                self._schedule_next()
        return self.bpm

    def reschedule(self):
        """Recreate the timer without moving the next tick"""
        with self._lock:
            if self.is_running:
                self._cancel_timer()
                self._schedule_next()

    # ============ Ticking ============

    def tick(self) -> int:
        """
        Advance one column and fire it

        Returns:
            The new column (0-15)
        """
        with self._lock:
            column = (self.current_column + 1) % COLS
            self.current_column = column
            for layer in self.layers:
                for row in self.grid.active_rows(layer.index, column):
                    self.synthesizer.trigger(layer, row)
                    self.effects.spawn(layer.effect, row, column, layer.index, layer.color)
        self._notify(column)
        return column

    def _on_timer(self, gen: int):
        with self._lock:
            if gen != self._timer_gen:
                return  # Superseded by a newer timer
            self._timer_id = None
            if not self.is_running:
                return
            period_s = self.period_ms / 1000.0
            self._next_deadline += period_s
            now = self._clock()
            if self._next_deadline < now - period_s:
                # Fell more than a step behind (host stalled); resync
                # instead of firing a burst of catch-up ticks
                self._next_deadline = now + period_s
            self._schedule_next()
            self.tick()

    def _schedule_next(self):
        delay_ms = max(0.0, (self._next_deadline - self._clock()) * 1000.0)
        self._timer_gen += 1
        self._timer_id = self.scheduler.after(int(round(delay_ms)), self._on_timer,
                                              self._timer_gen)

    def _cancel_timer(self):
        self._timer_gen += 1
        if self._timer_id is not None:
            self.scheduler.after_cancel(self._timer_id)
            self._timer_id = None

    def _notify(self, column: int):
        for listener in self._step_listeners:
            listener(column)
