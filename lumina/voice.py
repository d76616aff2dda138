"""
Voice for Lumina Grid
A single triggered sound: rendered samples plus a scheduled start and stop
"""

from typing import Optional

import numpy as np


class Voice:
    """
    One ephemeral synthesis result

    A voice is built by a factory function in synthesizer.py, told when
    to stop with schedule_stop(), and handed to the master bus, which
    fixes its start frame and mixes it until the stop frame has been
    rendered. After that the bus drops it; nothing else holds on to it.
    """

    def __init__(self, samples: np.ndarray, sample_rate: int = 44100, label: str = ""):
        self.samples = np.asarray(samples, dtype=np.float32)
        self.sr = sample_rate
        self.label = label
        self.start_frame: Optional[int] = None
        # Stop offset (samples from start); defaults to the rendered length
        self.stop_offset = len(self.samples)

    def schedule_stop(self, after_s: float):
        """Stop the voice after_s seconds after it starts"""
        self.stop_offset = max(0, int(round(after_s * self.sr)))

    def start(self, frame: int):
        """Called by the bus when the voice is scheduled"""
        self.start_frame = int(frame)

    @property
    def duration_s(self) -> float:
        return min(len(self.samples), self.stop_offset) / self.sr

    @property
    def end_frame(self) -> Optional[int]:
        """First frame after the voice has stopped sounding"""
        if self.start_frame is None:
            return None
        return self.start_frame + min(len(self.samples), self.stop_offset)

    @property
    def peak(self) -> float:
        if len(self.samples) == 0:
            return 0.0
        return float(np.max(np.abs(self.samples)))

    def is_finished(self, frame: int) -> bool:
        """True once frame has reached the scheduled stop"""
        end = self.end_frame
        return end is not None and frame >= end

    def mix_into(self, block: np.ndarray, block_start: int):
        """
        Add this voice's samples that fall inside a block

        Args:
            block: Mono accumulation buffer, modified in place
            block_start: Absolute frame index of block[0]
        """
        if self.start_frame is None:
            return
        begin = max(block_start, self.start_frame)
        end = min(block_start + len(block), self.end_frame)
        if end <= begin:
            return
        block[begin - block_start:end - block_start] += \
            self.samples[begin - self.start_frame:end - self.start_frame]

    def __repr__(self):
        return f"Voice({self.label!r}, {self.duration_s:.3f}s, start={self.start_frame})"
