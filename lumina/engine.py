"""
Engine for Lumina Grid
Wires the grid, layers, synthesizer, sequencer clock and effects together
and exposes the input, configuration and render surfaces used by the GUI
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

import numpy as np

from .brightness import brightness_field, cell_brightness, is_displaced
from .constants import DEFAULT_BPM, NUM_LAYERS
from .effects import EffectSimulation
from .layers import EffectArchetype, default_layers
from .master_bus import MasterBus
from .pattern_grid import PaintGesture, PatternGrid
from .render_loop import FrameDriver
from .scheduling import ThreadScheduler
from .sequencer import SequencerClock
from .synthesizer import LuminaSynthesizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSnapshot:
    """Read-only view of everything the display needs"""
    grids: np.ndarray             # layers x rows x cols, copy
    layers: Tuple[dict, ...]
    active_layer: int
    step_column: int
    bpm: float
    is_playing: bool
    effect_count: int


class LuminaEngine:
    """
    The step sequencer core

    Two independent loops share this object's state: the sequencer clock
    (musical steps) and the frame driver (visual frames). Both run on
    the given scheduler; pass the Tk root to keep everything on the GUI
    thread, or leave the default ThreadScheduler for headless use.
    """

    def __init__(self, bus: Optional[MasterBus] = None, scheduler=None,
                 synthesizer=None, clock: Callable[[], float] = time.monotonic,
                 rng: Optional[np.random.Generator] = None, bpm: float = DEFAULT_BPM,
                 frame_interval_ms: int = FrameDriver.DEFAULT_INTERVAL_MS):
        """
        Args:
            bus: Audio output; defaults to the shared MasterBus
            scheduler: after()/after_cancel() provider (Tk root or ThreadScheduler)
            synthesizer: Trigger target; defaults to a LuminaSynthesizer on bus
            clock: Monotonic time source in seconds (sequencer and effects)
            rng: Random source for noise and splash particles
            bpm: Initial tempo
            frame_interval_ms: Render frame period
        """
        self.layers = default_layers()
        self.grid = PatternGrid()
        self.bus = bus if bus is not None else MasterBus.get_instance()
        self.synth = synthesizer if synthesizer is not None else LuminaSynthesizer(self.bus, rng)
        self.scheduler = scheduler if scheduler is not None else ThreadScheduler()

        self.effects = EffectSimulation(clock_ms=lambda: clock() * 1000.0, rng=rng)
        self.frame_driver = FrameDriver(self.effects, self.scheduler, frame_interval_ms)
        self.sequencer = SequencerClock(self.grid, self.layers, self.synth, self.effects,
                                        self.scheduler, clock=clock)
        self.sequencer.set_tempo(bpm)
        self.gesture = PaintGesture(self.grid)

        self.active_layer = 0

    def _layer_ok(self, layer_index: int) -> bool:
        if isinstance(layer_index, (int, np.integer)) and 0 <= layer_index < NUM_LAYERS:
            return True
        logger.debug("Ignoring invalid layer index %r", layer_index)
        return False

    @staticmethod
    def _number(value, what: str) -> Optional[float]:
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric %s %r", what, value)
            return None

    # ============ Input ============

    def select_layer(self, layer_index: int):
        """Choose the layer that is edited and displayed"""
        if self._layer_ok(layer_index):
            self.active_layer = int(layer_index)

    def toggle_cell(self, layer_index: int, row: int, col: int) -> bool:
        state = self.grid.toggle_cell(layer_index, row, col)
        self.sequencer.reschedule()
        return state

    def activate_cell_if_inactive(self, layer_index: int, row: int, col: int) -> bool:
        changed = self.grid.activate_cell_if_inactive(layer_index, row, col)
        if changed:
            self.sequencer.reschedule()
        return changed

    def press_cell(self, row: int, col: int) -> bool:
        """
        Pointer down on a cell of the displayed layer

        The first press is also the user gesture that opens audio.
        """
        self.bus.initialize()
        state = self.gesture.press(self.active_layer, row, col)
        self.sequencer.reschedule()
        return state

    def drag_over_cell(self, row: int, col: int) -> bool:
        changed = self.gesture.drag(self.active_layer, row, col)
        if changed:
            self.sequencer.reschedule()
        return changed

    def release(self):
        self.gesture.release()

    # ============ Configuration ============

    def set_volume(self, layer_index: int, volume: float):
        """Set a layer's volume (clamped to 0-1)"""
        volume = self._number(volume, "volume")
        if volume is not None and self._layer_ok(layer_index):
            self.layers[layer_index].volume = volume
            self.sequencer.reschedule()

    def set_effect_archetype(self, layer_index: int,
                             archetype: Union[EffectArchetype, str]) -> bool:
        """
        Set a layer's visual archetype

        Args:
            layer_index: Layer 0-3
            archetype: EffectArchetype or its name (case-insensitive)

        Returns:
            True if applied; unknown names are logged and ignored
        """
        try:
            archetype = EffectArchetype.parse(archetype)
        except ValueError as e:
            logger.warning("%s", e)
            return False
        if not self._layer_ok(layer_index):
            return False
        self.layers[layer_index].set_effect(archetype)
        self.sequencer.reschedule()
        return True

    def set_tempo(self, bpm: float) -> float:
        """Set tempo; returns the effective (clamped) value"""
        bpm = self._number(bpm, "tempo")
        if bpm is None:
            return self.sequencer.bpm
        return self.sequencer.set_tempo(bpm)

    def set_master_gain(self, gain: float):
        gain = self._number(gain, "master gain")
        if gain is not None:
            self.bus.master_gain = gain

    def play(self):
        self.bus.initialize()
        self.sequencer.start()

    def pause(self):
        self.sequencer.stop()

    def toggle_playback(self) -> bool:
        """Play/pause; returns True when now playing"""
        if not self.sequencer.is_running:
            self.bus.initialize()
        return self.sequencer.toggle()

    def clear_layer(self, layer_index: Optional[int] = None):
        """Clear one layer's pattern (defaults to the displayed layer)"""
        if layer_index is None:
            layer_index = self.active_layer
        if self._layer_ok(layer_index):
            self.grid.clear_layer(layer_index)
            self.sequencer.reschedule()

    # ============ Render queries ============

    @property
    def is_playing(self) -> bool:
        return self.sequencer.is_running

    @property
    def bpm(self) -> float:
        return self.sequencer.bpm

    def current_step_column(self) -> int:
        """-1 when stopped, else 0-15"""
        return self.sequencer.current_column

    def brightness(self, row: int, col: int) -> float:
        """Effect brightness of a cell of the displayed layer"""
        return cell_brightness(self.effects.effects(), self.active_layer, row, col,
                               self.effects.now_ms())

    def brightness_field(self) -> np.ndarray:
        """Brightness of every cell of the displayed layer"""
        return brightness_field(self.effects.effects(), self.active_layer, self.effects.now_ms())

    def is_displaced(self, row: int, col: int) -> bool:
        return is_displaced(self.effects.effects(), self.active_layer, row, col)

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            grids=self.grid.snapshot(),
            layers=tuple(layer.to_dict() for layer in self.layers),
            active_layer=self.active_layer,
            step_column=self.sequencer.current_column,
            bpm=self.sequencer.bpm,
            is_playing=self.sequencer.is_running,
            effect_count=len(self.effects),
        )

    # ============ Listeners / lifecycle ============

    def add_step_listener(self, listener: Callable[[int], None]):
        self.sequencer.add_step_listener(listener)

    def add_frame_listener(self, listener: Callable[[], None]):
        self.frame_driver.add_frame_listener(listener)

    def dispose(self):
        """Stop both loops and release the audio device (idempotent)"""
        self.sequencer.stop()
        self.frame_driver.dispose()
        self.bus.dispose()
