"""
Master Bus for Lumina Grid
Shared output chain: voices -> master gain -> compressor -> audio device
"""

import logging
import threading
from typing import Callable, List, Optional

import numpy as np

from .compressor import DynamicsCompressor
from .constants import DEFAULT_SAMPLE_RATE, clamp
from .voice import Voice

try:
    import sounddevice as sd
    AUDIO_AVAILABLE = True
except (ImportError, OSError):
    # OSError: sounddevice installed but the PortAudio library is missing
    sd = None
    AUDIO_AVAILABLE = False

logger = logging.getLogger(__name__)


class MasterBus:
    """
    Process-wide audio output

    Nothing touches the device until initialize() is called (normally
    from the first play/click). Without an output device the bus stays
    uninitialised and every schedule() is a silent no-op.

    The audio callback runs on the PortAudio thread; the voice list is
    shared with trigger calls from the sequencer and guarded by a lock.
    """

    DEFAULT_MASTER_GAIN = 0.4
    MAX_VOICES = 256  # Oldest voices are dropped beyond this

    # Compressor settings (hearing protection, no clipping)
    COMPRESSOR_SETTINGS = {
        'threshold_db': -24.0,
        'knee_db': 30.0,
        'ratio': 12.0,
        'attack_s': 0.003,
        'release_s': 0.25,
    }

    _instance: Optional['MasterBus'] = None
    _instance_lock = threading.Lock()

    @classmethod
    def get_instance(cls, **kwargs) -> 'MasterBus':
        """Return the shared bus, creating it with kwargs on first use"""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(**kwargs)
            return cls._instance

    @classmethod
    def reset_instance(cls):
        """Dispose and forget the shared bus"""
        with cls._instance_lock:
            if cls._instance is not None:
                cls._instance.dispose()
            cls._instance = None

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE, blocksize: int = 1024,
                 device=None, stream_factory: Optional[Callable] = None):
        """
        Args:
            sample_rate: Output sample rate in Hz
            blocksize: Frames per audio callback
            device: sounddevice output device (index or name), None = default
            stream_factory: Callable with the sounddevice.OutputStream
                signature; defaults to sounddevice.OutputStream
        """
        self.sample_rate = sample_rate
        self.blocksize = blocksize
        self.device = device
        self._stream_factory = stream_factory

        self.stream = None
        self.compressor: Optional[DynamicsCompressor] = None
        self._master_gain = self.DEFAULT_MASTER_GAIN
        self.is_initialized = False

        self._voices: List[Voice] = []
        self._frame = 0
        self._lock = threading.Lock()

        # Underrun bookkeeping
        self.callback_count = 0
        self.underrun_count = 0

    # ============== Lifecycle ==============

    def initialize(self) -> bool:
        """
        Open the output chain (idempotent)

        Safe to call repeatedly: the stream is created once, and a
        stream that has been stopped is restarted.

        Returns:
            True if the bus can produce sound
        """
        try:
            if self.stream is None:
                factory = self._stream_factory
                if factory is None:
                    if not AUDIO_AVAILABLE:
                        logger.warning("sounddevice not available. Audio playback disabled.")
                        return False
                    factory = sd.OutputStream

                self.compressor = DynamicsCompressor(self.sample_rate, **self.COMPRESSOR_SETTINGS)
                self.stream = factory(
                    device=self.device,
                    channels=2,
                    callback=self._audio_callback,
                    samplerate=self.sample_rate,
                    blocksize=self.blocksize,
                    dtype='float32',
                )
                self.is_initialized = True
                logger.info("Audio output opened (%d Hz, block %d)", self.sample_rate, self.blocksize)

            if not self.stream.active:
                self.stream.start()
        except Exception as e:
            logger.error("Audio initialization failed: %s", e)
        return self.is_initialized

    def dispose(self):
        """Close the device and drop all voices (idempotent)"""
        with self._lock:
            stream = self.stream
            self.stream = None
            self.compressor = None
            self._voices = []
            self.is_initialized = False

        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except Exception as e:
                logger.debug("Ignoring error while closing audio stream: %s", e)
            logger.info("Audio output closed")

    # ============== Voices ==============

    @property
    def current_frame(self) -> int:
        return self._frame

    @property
    def current_time(self) -> float:
        """Seconds of audio rendered since the bus was created"""
        return self._frame / self.sample_rate

    @property
    def voice_count(self) -> int:
        with self._lock:
            return len(self._voices)

    @property
    def master_gain(self) -> float:
        return self._master_gain

    @master_gain.setter
    def master_gain(self, value: float):
        self._master_gain = clamp(float(value), 0.0, 1.0)

    def schedule(self, voice: Voice) -> Optional[Voice]:
        """
        Start a voice at the next rendered frame

        Returns:
            The voice, or None when the bus is silent
        """
        if not self.is_initialized:
            return None
        with self._lock:
            voice.start(self._frame)
            self._voices.append(voice)
            if len(self._voices) > self.MAX_VOICES:
                del self._voices[:len(self._voices) - self.MAX_VOICES]
        return voice

    # ============== Rendering ==============

    def render(self, num_frames: int) -> np.ndarray:
        """
        Mix the next block of output

        Voices whose stop frame falls inside this block are mixed one
        last time and then released.

        Args:
            num_frames: Number of frames to generate

        Returns:
            Stereo audio array [num_frames, 2]
        """
        mix = np.zeros(num_frames, dtype=np.float32)
        with self._lock:
            block_start = self._frame
            block_end = block_start + num_frames
            live = []
            for voice in self._voices:
                voice.mix_into(mix, block_start)
                if not voice.is_finished(block_end):
                    live.append(voice)
            self._voices = live
            self._frame = block_end
            compressor = self.compressor
            gain = self._master_gain

        mix *= gain
        if compressor is not None:
            mix = compressor.process(mix)
        return np.column_stack((mix, mix))

    def _audio_callback(self, outdata, frames, time_info, status):
        """Audio callback for sounddevice"""
        self.callback_count += 1
        if status:
            self.underrun_count += 1
            if self.underrun_count <= 5:  # Only log the first few
                logger.warning("Audio callback status: %s", status)
        outdata[:] = self.render(frames)
