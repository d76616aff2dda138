"""
Biquad Filter for Lumina Grid
Low-pass, band-pass and high-pass filtering for percussion noise
"""

import numpy as np
from enum import Enum
from scipy.signal import lfilter


class FilterMode(Enum):
    LOW_PASS = 0
    BAND_PASS = 1
    HIGH_PASS = 2


class BiquadFilter:
    """
    Second-order IIR filter (RBJ cookbook coefficients)

    Band-pass uses the constant 0 dB peak gain form, so a filtered
    burst never exceeds the level of the input at the centre frequency.
    """

    def __init__(self, sample_rate: int = 44100, mode: FilterMode = FilterMode.LOW_PASS,
                 frequency: float = 350.0, q: float = 1.0):
        self.sr = sample_rate
        self.mode = mode
        self.frequency = frequency
        self.q = q

        # Cached coefficients
        self._cached_b = None
        self._cached_a = None
        self._coeffs_dirty = True

    def set_frequency(self, freq: float):
        """Set cutoff/centre frequency in Hz (clamped below Nyquist)"""
        self.frequency = float(np.clip(freq, 10.0, self.sr * 0.49))
        self._coeffs_dirty = True

    def set_q(self, q: float):
        """Set Q (0.0001 - 1000)"""
        self.q = float(np.clip(q, 0.0001, 1000.0))
        self._coeffs_dirty = True

    def set_mode(self, mode: FilterMode):
        if mode != self.mode:
            self.mode = mode
            self._coeffs_dirty = True

    def coefficients(self):
        """Return normalised (b, a) coefficient arrays"""
        if self._coeffs_dirty or self._cached_b is None:
            self._update_coefficients()
        return self._cached_b, self._cached_a

    def _update_coefficients(self):
        freq = np.clip(self.frequency, 10.0, self.sr * 0.49)
        w0 = 2.0 * np.pi * freq / self.sr
        cos_w0 = np.cos(w0)
        alpha = np.sin(w0) / (2.0 * max(self.q, 0.0001))

        if self.mode == FilterMode.BAND_PASS:
            b = [alpha, 0.0, -alpha]
        elif self.mode == FilterMode.HIGH_PASS:
            b = [(1.0 + cos_w0) / 2.0, -(1.0 + cos_w0), (1.0 + cos_w0) / 2.0]
        else:
            b = [(1.0 - cos_w0) / 2.0, 1.0 - cos_w0, (1.0 - cos_w0) / 2.0]
        a = [1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha]

        self._cached_b = np.asarray(b) / a[0]
        self._cached_a = np.asarray(a) / a[0]
        self._coeffs_dirty = False

    def process(self, samples: np.ndarray) -> np.ndarray:
        """Filter a whole buffer from rest"""
        b, a = self.coefficients()
        return lfilter(b, a, samples).astype(np.float32)
