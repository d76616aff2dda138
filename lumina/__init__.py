"""
Lumina Grid
A four-layer 16x16 light-grid step sequencer with a small synthesizer
"""

__version__ = "1.0.0"

from .engine import LuminaEngine, EngineSnapshot
from .layers import LayerConfig, SynthKind, EffectArchetype, default_layers
from .pattern_grid import PatternGrid, PaintGesture, GridGeometry
from .master_bus import MasterBus
from .synthesizer import LuminaSynthesizer
from .sequencer import SequencerClock
from .effects import Effect, EffectSimulation
from .render_loop import FrameDriver
from .scheduling import ThreadScheduler

__all__ = [
    'LuminaEngine',
    'EngineSnapshot',
    'LayerConfig',
    'SynthKind',
    'EffectArchetype',
    'default_layers',
    'PatternGrid',
    'PaintGesture',
    'GridGeometry',
    'MasterBus',
    'LuminaSynthesizer',
    'SequencerClock',
    'Effect',
    'EffectSimulation',
    'FrameDriver',
    'ThreadScheduler'
]
