"""
Synthesizer for Lumina Grid
Builds one voice per triggered cell and hands it to the master bus
"""

import logging
from typing import NamedTuple, Optional, Union

import numpy as np

from .constants import BASE_FREQ, clamp_volume, pitch_ratio, safe_frequency
from .envelope import Envelope, exponential_ramp
from .filter import FilterMode
from .layers import LayerConfig, SynthKind
from .master_bus import MasterBus
from .noise import NoiseGenerator
from .oscillator import Oscillator
from .voice import Voice

logger = logging.getLogger(__name__)


class ToneShape(NamedTuple):
    peak: float         # Peak gain at full volume
    attack_s: float     # Linear rise from 0
    decay_end_s: float  # Time the exponential decay reaches silence
    stop_s: float       # Voice stop, a little after silence


TONE_SHAPES = {
    SynthKind.SQUARE: ToneShape(0.3, 0.01, 0.3, 0.45),     # Short, plucky
    SynthKind.TRIANGLE: ToneShape(0.5, 0.05, 0.8, 0.95),   # Long, soft bass
}
DEFAULT_TONE_SHAPE = ToneShape(0.6, 0.01, 0.5, 0.65)       # Sine / sawtooth

# Percussion bands by row
KICK_MIN_ROW = 12
SNARE_MIN_ROW = 8


def _as_kind(kind: Union[SynthKind, str]) -> SynthKind:
    """Coerce a kind or its value; unknown kinds play as sine"""
    if isinstance(kind, SynthKind):
        return kind
    try:
        return SynthKind(str(kind).lower())
    except ValueError:
        return SynthKind.SINE


def tone_frequency(pitch_row: int, octave_offset: float, sample_rate: int) -> float:
    """
    Frequency for a grid row

    BASE_FREQ * pitch_ratio(row) * 2 ** octave_offset, capped at Nyquist.
    Unknown rows use ratio 1.0; NaN or overflowing results map to the cap.
    """
    freq = BASE_FREQ * pitch_ratio(pitch_row)
    if octave_offset:
        try:
            freq *= 2.0 ** float(octave_offset)
        except OverflowError:
            freq = float('inf')
    return safe_frequency(freq, sample_rate)


def build_tone_voice(pitch_row: int, kind: Union[SynthKind, str], octave_offset: float,
                     volume: float, sample_rate: int = 44100) -> Voice:
    """
    Render a sustained-tone voice

    Args:
        pitch_row: Grid row selecting the pitch
        kind: Waveform (sine, square, triangle, sawtooth)
        octave_offset: Octave shift, may be fractional
        volume: Trigger volume, clamped to 0-1
        sample_rate: Sample rate in Hz

    Returns:
        Voice with its stop scheduled shortly after the envelope ends
    """
    kind = _as_kind(kind)
    if kind.is_percussive:
        kind = SynthKind.SINE
    volume = clamp_volume(volume)
    shape = TONE_SHAPES.get(kind, DEFAULT_TONE_SHAPE)
    freq = tone_frequency(pitch_row, octave_offset, sample_rate)

    num_samples = int(round(shape.stop_s * sample_rate))
    osc = Oscillator(sample_rate, kind)
    env = Envelope(sample_rate, peak=shape.peak * volume,
                   attack_s=shape.attack_s, decay_end_s=shape.decay_end_s)
    samples = osc.render(freq, num_samples) * env.render(num_samples)

    voice = Voice(samples, sample_rate, label=f"{kind.value} row {pitch_row}")
    voice.schedule_stop(shape.stop_s)
    return voice


def build_kick_voice(volume: float, sample_rate: int = 44100) -> Voice:
    """Sine swept 150 Hz -> 0.01 Hz with a 0.5 s exponential decay"""
    volume = clamp_volume(volume)
    sweep_n = int(0.5 * sample_rate)
    num_samples = int(0.51 * sample_rate)

    freq = np.full(num_samples, 0.01, dtype=np.float64)
    freq[:sweep_n] = exponential_ramp(150.0, 0.01, sweep_n)

    osc = Oscillator(sample_rate, SynthKind.SINE)
    env = Envelope(sample_rate, peak=1.0, attack_s=0.0, decay_end_s=0.5)
    samples = osc.render(freq, num_samples) * env.render(num_samples) * volume

    voice = Voice(samples, sample_rate, label="kick")
    voice.schedule_stop(0.51)
    return voice


def build_snare_voice(volume: float, noise: NoiseGenerator) -> Voice:
    """100 ms of band-passed noise around 1 kHz"""
    volume = clamp_volume(volume)
    burst = noise.filtered(0.1, FilterMode.BAND_PASS, 1000.0, q=1.0)
    env = Envelope(noise.sr, peak=1.0, attack_s=0.0, decay_end_s=0.2, floor=0.01)
    samples = burst * env.render(len(burst)) * volume

    voice = Voice(samples, noise.sr, label="snare")
    voice.schedule_stop(0.1)
    return voice


def build_hihat_voice(volume: float, noise: NoiseGenerator) -> Voice:
    """50 ms of high-passed noise above 5 kHz"""
    volume = clamp_volume(volume)
    burst = noise.filtered(0.05, FilterMode.HIGH_PASS, 5000.0, q=1.0)
    env = Envelope(noise.sr, peak=0.6, attack_s=0.0, decay_end_s=0.05, floor=0.01)
    samples = burst * env.render(len(burst)) * volume

    voice = Voice(samples, noise.sr, label="hihat")
    voice.schedule_stop(0.05)
    return voice


class LuminaSynthesizer:
    """
    Trigger front end for the master bus

    Triggers never raise: when the bus is silent they do nothing, and
    any failure while building or scheduling a voice is logged and
    playback carries on with the next trigger.
    """

    def __init__(self, bus: MasterBus, rng: Optional[np.random.Generator] = None):
        self.bus = bus
        self.noise = NoiseGenerator(bus.sample_rate, rng)

    @property
    def sample_rate(self) -> int:
        return self.bus.sample_rate

    def trigger_tone(self, pitch_row: int, kind: Union[SynthKind, str],
                     octave_offset: float = 0.0, volume: float = 0.8) -> Optional[Voice]:
        """
        Play a tone for a grid row

        Args:
            pitch_row: Grid row (0-15) selecting the pitch
            kind: Waveform; DRUM is routed to trigger_percussion
            octave_offset: Layer octave shift
            volume: Layer volume (0-1)
        """
        if not self.bus.is_initialized:
            return None
        if _as_kind(kind).is_percussive:
            return self.trigger_percussion(pitch_row, volume)
        try:
            voice = build_tone_voice(pitch_row, kind, octave_offset, volume, self.sample_rate)
            return self.bus.schedule(voice)
        except Exception as e:
            logger.warning("Audio synthesis error (tone): %s", e)
            return None

    def trigger_percussion(self, pitch_row: int, volume: float = 0.8) -> Optional[Voice]:
        """
        Play a drum hit; the row picks the instrument

        Rows 12 and up play a kick, rows 8-11 a snare, anything lower a hi-hat.
        """
        if not self.bus.is_initialized:
            return None
        try:
            if pitch_row >= KICK_MIN_ROW:
                voice = build_kick_voice(volume, self.sample_rate)
            elif pitch_row >= SNARE_MIN_ROW:
                voice = build_snare_voice(volume, self.noise)
            else:
                voice = build_hihat_voice(volume, self.noise)
            return self.bus.schedule(voice)
        except Exception as e:
            logger.warning("Audio synthesis error (drum): %s", e)
            return None

    def trigger(self, layer: LayerConfig, row: int) -> Optional[Voice]:
        """Play a cell of a layer using the layer's kind, octave and volume"""
        if layer.kind.is_percussive:
            return self.trigger_percussion(row, layer.volume)
        return self.trigger_tone(row, layer.kind, layer.base_octave, layer.volume)
