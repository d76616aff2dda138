"""
Oscillator for Lumina Grid
Sine, square, sawtooth and triangle waveforms with optional frequency sweeps
"""

from typing import Union

import numpy as np
from scipy.signal import cheby1, sosfilt

from .layers import SynthKind


TWO_PI = 2.0 * np.pi


class Oscillator:
    """
    Phase-accumulating oscillator

    Frequency may be a scalar or a per-sample array (pitch sweeps).
    Sine, sawtooth and triangle start at zero going positive; square
    starts high and relies on the envelope attack for a clean onset.
    """

    # Square and sawtooth carry 1/n harmonics and alias audibly when
    # generated naively; they are rendered oversampled and decimated.
    OVERSAMPLE_FACTOR = 4
    OVERSAMPLED = (SynthKind.SQUARE, SynthKind.SAWTOOTH)

    def __init__(self, sample_rate: int = 44100, waveform: SynthKind = SynthKind.SINE):
        self.sr = sample_rate
        self.waveform = self._safe_waveform(waveform)
        self._os_sos = None

    @staticmethod
    def _safe_waveform(waveform) -> SynthKind:
        """Percussive or unknown kinds fall back to sine"""
        if isinstance(waveform, SynthKind) and not waveform.is_percussive:
            return waveform
        return SynthKind.SINE

    def set_waveform(self, waveform: SynthKind):
        self.waveform = self._safe_waveform(waveform)

    def render(self, frequency: Union[float, np.ndarray], num_samples: int) -> np.ndarray:
        """
        Generate audio samples

        Args:
            frequency: Frequency in Hz, scalar or array of num_samples values
            num_samples: Number of samples to generate

        Returns:
            numpy array of samples in [-1, 1]
        """
        if num_samples <= 0:
            return np.zeros(0, dtype=np.float32)

        freq = np.broadcast_to(np.asarray(frequency, dtype=np.float64), (num_samples,))

        if self.waveform in self.OVERSAMPLED:
            return self._render_oversampled(freq, num_samples)

        phases = self._phases(freq, self.sr)
        return self._shape(phases).astype(np.float32)

    def _render_oversampled(self, freq: np.ndarray, num_samples: int) -> np.ndarray:
        """Render at OVERSAMPLE_FACTOR x the rate, low-pass, then decimate"""
        factor = self.OVERSAMPLE_FACTOR
        if self._os_sos is None:
            # Chebyshev Type I: steep rolloff, 0.5dB passband ripple,
            # cutoff at 90% of the base-rate Nyquist
            self._os_sos = cheby1(8, 0.5, 0.9 / factor, btype='low', output='sos')

        phases = self._phases(np.repeat(freq, factor), self.sr * factor)
        oversampled = self._shape(phases)
        filtered = sosfilt(self._os_sos, oversampled)
        return filtered[::factor][:num_samples].astype(np.float32)

    @staticmethod
    def _phases(freq: np.ndarray, sample_rate: int) -> np.ndarray:
        """Cumulative phase, first sample at exactly 0"""
        increments = (TWO_PI / sample_rate) * freq
        return np.cumsum(increments) - increments

    def _shape(self, phases: np.ndarray) -> np.ndarray:
        """Map phase (radians) to the waveform value"""
        if self.waveform == SynthKind.SINE:
            return np.sin(phases)

        cycle = np.mod(phases / TWO_PI, 1.0)
        if self.waveform == SynthKind.SQUARE:
            return np.where(cycle < 0.5, 1.0, -1.0)
        if self.waveform == SynthKind.SAWTOOTH:
            # Rising ramp centred so that phase 0 gives 0
            return 2.0 * np.mod(cycle + 0.5, 1.0) - 1.0
        # Triangle: 0 at phase 0, +1 at a quarter cycle
        return 1.0 - 4.0 * np.abs(np.mod(cycle + 0.25, 1.0) - 0.5)
