"""
Dynamics Compressor for Lumina Grid
Soft-knee feed-forward compressor protecting the master output from clipping
"""

import numpy as np


class DynamicsCompressor:
    """
    Peak-detecting compressor with a quadratic soft knee

    Gain reduction is computed once per 32-sample sub-block, smoothed
    with separate attack/release time constants and interpolated across
    the block so gain changes stay zipper-free.

    Usage:
        comp = DynamicsCompressor(44100)
        out = comp.process(block)      # mono (n,) or multichannel (n, ch)
        comp.reduction_db              # current gain reduction (<= 0)
    """

    SUBBLOCK = 32

    def __init__(self, sample_rate: int = 44100, threshold_db: float = -24.0,
                 knee_db: float = 30.0, ratio: float = 12.0,
                 attack_s: float = 0.003, release_s: float = 0.25):
        self.sr = sample_rate
        self.threshold_db = float(np.clip(threshold_db, -100.0, 0.0))
        self.knee_db = float(np.clip(knee_db, 0.0, 40.0))
        self.ratio = float(np.clip(ratio, 1.0, 20.0))
        self.attack_s = float(np.clip(attack_s, 0.0, 1.0))
        self.release_s = float(np.clip(release_s, 0.0, 1.0))

        self._reduction_db = 0.0
        self._update_coefficients()

    def _update_coefficients(self):
        """Per-sub-block smoothing coefficients from the time constants"""
        self._attack_coeff = self._coefficient(self.attack_s)
        self._release_coeff = self._coefficient(self.release_s)

    def _coefficient(self, time_s: float) -> float:
        if time_s <= 0.0:
            return 0.0  # Instant
        return float(np.exp(-self.SUBBLOCK / (time_s * self.sr)))

    @property
    def reduction_db(self) -> float:
        return self._reduction_db

    def reset(self):
        self._reduction_db = 0.0

    def gain_reduction_db(self, level_db: np.ndarray) -> np.ndarray:
        """
        Static curve: gain change in dB for the given input levels

        Below the knee the signal passes unchanged; above it the level
        rises at 1/ratio; inside the knee the two are joined quadratically.
        """
        level_db = np.asarray(level_db, dtype=np.float64)
        over = level_db - self.threshold_db
        slope = 1.0 / self.ratio - 1.0
        half_knee = self.knee_db / 2.0

        reduction = np.where(over > half_knee, slope * over, 0.0)
        if self.knee_db > 0.0:
            in_knee = np.abs(over) <= half_knee
            knee_curve = slope * (over + half_knee) ** 2 / (2.0 * self.knee_db)
            reduction = np.where(in_knee, knee_curve, reduction)
        return reduction

    def process(self, samples: np.ndarray) -> np.ndarray:
        """
        Compress a block of audio

        Args:
            samples: Mono (n,) or multichannel (n, channels) samples

        Returns:
            Compressed samples, same shape, float32
        """
        x = np.asarray(samples, dtype=np.float32)
        n = x.shape[0]
        if n == 0:
            return x.copy()

        # Linked detection across channels
        magnitude = np.abs(x) if x.ndim == 1 else np.max(np.abs(x), axis=1)

        sub = self.SUBBLOCK
        num_sub = (n + sub - 1) // sub
        padded = np.zeros(num_sub * sub, dtype=np.float32)
        padded[:n] = magnitude
        peaks = padded.reshape(num_sub, sub).max(axis=1)
        targets = self.gain_reduction_db(20.0 * np.log10(np.maximum(peaks, 1e-9)))

        # Attack when more reduction is needed, release otherwise
        boundaries = np.empty(num_sub + 1, dtype=np.float64)
        boundaries[0] = current = self._reduction_db
        for i, target in enumerate(targets):
            coeff = self._attack_coeff if target < current else self._release_coeff
            current = coeff * current + (1.0 - coeff) * target
            boundaries[i + 1] = current
        self._reduction_db = float(current)

        curve_db = np.interp(np.arange(n), np.arange(num_sub + 1) * sub, boundaries)
        gain = np.power(10.0, curve_db / 20.0).astype(np.float32)

        if x.ndim == 1:
            return x * gain
        return x * gain[:, np.newaxis]
