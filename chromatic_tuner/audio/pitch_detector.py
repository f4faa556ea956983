"""Pitch detectors that estimate the fundamental of a fixed-size buffer."""

from __future__ import annotations
from typing import ClassVar, Optional, Tuple

import aubio
import numpy as np

from ..logging_config import get_logger
from ..core.interfaces import IPitchDetector
from .utils import DEFAULT_BUFFER_SIZE, clamp_confidence

logger = get_logger(__name__)


class AubioPitchDetector(IPitchDetector):
    """Pitch detection backed by aubio (YIN family).

    The aubio object is built once for the buffer size and rebuilt only
    when the sample rate changes.
    """

    CONFIG_KEYS: ClassVar[Tuple[str, ...]] = ("method", "tolerance", "silence_db")
    METHODS: ClassVar[Tuple[str, ...]] = ("yin", "yinfft", "yinfast")

    def __init__(
        self,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        method: str = "yin",
        tolerance: float = 0.8,
        silence_db: Optional[float] = None,
        sample_rate: int = 44100,
    ) -> None:
        """
        Args:
            buffer_size: Samples per buffer; every call must pass this many
            method: aubio pitch method ('yin', 'yinfft' or 'yinfast')
            tolerance: aubio pitch tolerance (0.0 to 1.0)
            silence_db: Silence threshold in dB, or None for aubio's default
            sample_rate: Initial sample rate in Hz
        """
        if method not in self.METHODS:
            raise ValueError(f"Unsupported aubio method: {method}")
        if not 0.0 <= tolerance <= 1.0:
            raise ValueError("Tolerance must be between 0.0 and 1.0")

        self._buffer_size = buffer_size
        self._method = method
        self._tolerance = tolerance
        self._silence_db = silence_db
        self._sample_rate = int(sample_rate)
        self._pitch_o = self._create(self._sample_rate)

        logger.info(
            f"Pitch detector initialized: method={method}, "
            f"buffer_size={buffer_size}, sample_rate={self._sample_rate}"
        )

    def _create(self, sample_rate: int):
        pitch_o = aubio.pitch(self._method, self._buffer_size, self._buffer_size, sample_rate)
        pitch_o.set_unit("Hz")
        pitch_o.set_tolerance(self._tolerance)
        if self._silence_db is not None:
            pitch_o.set_silence(self._silence_db)
        return pitch_o

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    def find_pitch(self, buffer: np.ndarray, sample_rate: float) -> Tuple[float, float]:
        if len(buffer) != self._buffer_size:
            raise ValueError(
                f"Expected {self._buffer_size} samples, got {len(buffer)}"
            )

        rate = int(round(sample_rate))
        if rate != self._sample_rate:
            logger.info(f"Updating pitch detector sample rate from {self._sample_rate} to {rate} Hz")
            self._sample_rate = rate
            self._pitch_o = self._create(rate)

        samples = np.ascontiguousarray(buffer, dtype=np.float32)
        frequency = float(self._pitch_o(samples)[0])
        confidence = clamp_confidence(float(self._pitch_o.get_confidence()))
        return frequency, confidence
