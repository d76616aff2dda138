"""
Envelope Generator for Lumina Grid
Linear attack followed by an exponential decay to a silence floor
"""

import numpy as np


# Level treated as silence at the end of an exponential decay
SILENCE_FLOOR = 0.001


def exponential_ramp(start: float, end: float, num_samples: int) -> np.ndarray:
    """
    Exponential ramp from start towards end over num_samples

    Follows v(k) = start * (end / start) ** (k / num_samples), so the
    first sample is exactly start and end is reached one sample later.
    An exponential ramp is undefined through zero; if either endpoint
    is not positive the start value is held.
    """
    if num_samples <= 0:
        return np.zeros(0, dtype=np.float32)
    if start <= 0.0 or end <= 0.0:
        return np.full(num_samples, max(0.0, start), dtype=np.float32)
    fraction = np.arange(num_samples, dtype=np.float64) / num_samples
    return (start * (end / start) ** fraction).astype(np.float32)


class Envelope:
    """
    Attack-Decay gain envelope

    The level starts at 0 (or directly at peak when attack is 0), ramps
    linearly to peak, then decays exponentially so that it reaches floor
    at decay_end_s (measured from the trigger). After that it holds the
    floor until the owning voice is stopped.

    Starting from zero suppresses the click an instantaneous onset makes.
    """

    def __init__(self, sample_rate: int = 44100, peak: float = 1.0,
                 attack_s: float = 0.0, decay_end_s: float = 0.5,
                 floor: float = SILENCE_FLOOR):
        self.sr = sample_rate
        self.peak = max(0.0, float(peak))
        self.attack_s = max(0.0, float(attack_s))
        self.decay_end_s = max(self.attack_s, float(decay_end_s))
        # Never let the floor sit above the peak (quiet triggers)
        self.floor = min(float(floor), self.peak)

    @property
    def attack_samples(self) -> int:
        return int(round(self.attack_s * self.sr))

    @property
    def decay_end_samples(self) -> int:
        return max(self.attack_samples, int(round(self.decay_end_s * self.sr)))

    def render(self, num_samples: int) -> np.ndarray:
        """
        Render the envelope from the trigger instant

        Args:
            num_samples: Number of samples to generate

        Returns:
            numpy array of gain values in [0, peak]
        """
        output = np.zeros(num_samples, dtype=np.float32)
        if num_samples <= 0 or self.peak <= 0.0:
            return output

        attack_n = self.attack_samples
        decay_end_n = self.decay_end_samples

        # Linear attack from 0
        a = min(attack_n, num_samples)
        if a > 0:
            output[:a] = self.peak * np.arange(a, dtype=np.float32) / attack_n

        # Exponential decay from peak to floor
        d = min(decay_end_n, num_samples)
        if d > a:
            ramp = exponential_ramp(self.peak, self.floor, decay_end_n - attack_n)
            output[a:d] = ramp[:d - a]

        # Hold the floor until stop
        output[d:] = self.floor
        return output
