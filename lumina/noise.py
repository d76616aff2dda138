"""
Noise Generator for Lumina Grid
Short filtered white-noise bursts for snare and hi-hat voices
"""

from typing import Optional

import numpy as np

from .filter import BiquadFilter, FilterMode


class NoiseGenerator:
    """
    Uniform white noise in [-1, 1), optionally passed through a biquad

    A seeded Generator can be injected for reproducible output.
    """

    def __init__(self, sample_rate: int = 44100, rng: Optional[np.random.Generator] = None):
        self.sr = sample_rate
        self._rng = rng if rng is not None else np.random.default_rng()

    def white(self, duration_s: float) -> np.ndarray:
        """Unfiltered noise burst of the given length"""
        num_samples = max(0, int(self.sr * duration_s))
        return self._rng.uniform(-1.0, 1.0, num_samples).astype(np.float32)

    def filtered(self, duration_s: float, mode: FilterMode, frequency: float,
                 q: float = 1.0) -> np.ndarray:
        """
        Filtered noise burst

        Args:
            duration_s: Burst length in seconds
            mode: Filter mode (band-pass for snare, high-pass for hats)
            frequency: Cutoff/centre frequency in Hz
            q: Filter Q

        Returns:
            numpy array of filtered noise samples
        """
        noise = self.white(duration_s)
        if len(noise) == 0:
            return noise
        filt = BiquadFilter(self.sr, mode)
        filt.set_frequency(frequency)
        filt.set_q(q)
        return filt.process(noise)
