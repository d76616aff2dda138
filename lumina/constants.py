"""
Constants for Lumina Grid
Grid dimensions, tempo bounds, pitch table and clamping helpers
"""

import math
import numpy as np


# Grid
ROWS = 16
COLS = 16
NUM_LAYERS = 4

# Tempo
DEFAULT_BPM = 120
MIN_BPM = 60
MAX_BPM = 240
STEPS_PER_BEAT = 4  # Sixteenth-note resolution

# Audio
DEFAULT_SAMPLE_RATE = 44100
BASE_FREQ = 174.61  # F3
DEFAULT_VOLUME = 0.8

# Visuals
MAX_EFFECTS = 150  # Hard cap on concurrently live effects
FLOOR_Y = 15.5     # Bounce floor for the GRAVITY archetype

# Pentatonic ratios, top row highest
PENTATONIC_RATIOS = (
    4.0, 3.367, 3.0, 2.667, 2.378, 2.0, 1.683, 1.5,
    1.333, 1.189, 1.0, 0.841, 0.75, 0.667, 0.595, 0.5,
)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value to [low, high]. NaN clamps to low."""
    if value != value:  # NaN
        return low
    return max(low, min(high, value))


def clamp_volume(volume: float) -> float:
    """Clamp a layer or trigger volume to 0.0-1.0"""
    return clamp(float(volume), 0.0, 1.0)


def clamp_bpm(bpm: float) -> float:
    """Clamp tempo to the supported range (never zero or negative)"""
    return clamp(float(bpm), MIN_BPM, MAX_BPM)


def pitch_ratio(row: int) -> float:
    """
    Frequency ratio for a grid row

    Args:
        row: Grid row (0 = top, highest pitch)

    Returns:
        Table ratio, or 1.0 for rows outside 0-15
    """
    if isinstance(row, (int, np.integer)) and 0 <= row < len(PENTATONIC_RATIOS):
        return PENTATONIC_RATIOS[row]
    return 1.0


def step_period_ms(bpm: float) -> float:
    """Duration of one sequencer step (a sixteenth note) in milliseconds"""
    return 60000.0 / clamp_bpm(bpm) / STEPS_PER_BEAT


def in_grid(row: int, col: int) -> bool:
    """True when (row, col) addresses a cell of the 16x16 grid"""
    if not (isinstance(row, (int, np.integer)) and isinstance(col, (int, np.integer))):
        return False
    return 0 <= row < ROWS and 0 <= col < COLS


def safe_frequency(freq: float, sample_rate: int) -> float:
    """Cap a frequency at Nyquist; NaN and infinities map to the cap"""
    nyquist = sample_rate / 2.0
    if math.isnan(freq) or freq > nyquist:
        return nyquist
    return max(0.0, freq)
