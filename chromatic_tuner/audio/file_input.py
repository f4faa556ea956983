"""Audio source that reads a sound file instead of a live device."""

from __future__ import annotations
import os
from typing import Optional

import numpy as np
import soundfile as sf

from ..logging_config import get_logger
from ..core.errors import DeviceUnavailableError, PermissionDeniedError, TunerStateError
from ..core.interfaces import IAudioSource
from .utils import DEFAULT_BUFFER_SIZE

logger = get_logger(__name__)


class WavFileInput(IAudioSource):
    """Audio source that steps through a sound file one window at a time."""

    def __init__(
        self,
        file_path: str,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        hop_size: Optional[int] = None,
        loop: bool = False,
        gain: float = 1.0,
    ) -> None:
        """
        Args:
            file_path: Path to a file soundfile can decode (WAV, FLAC, ...)
            buffer_size: Samples per analysis buffer
            hop_size: Samples to advance per read, or None for buffer_size
            loop: Wrap around at the end of the file instead of finishing
            gain: Linear gain applied to the samples
        """
        self._file_path = file_path
        self._buffer_size = buffer_size
        self._hop_size = hop_size or buffer_size
        self._loop = loop
        self._gain = gain

        self._samples: Optional[np.ndarray] = None
        self._sample_rate = 0.0
        self._position = 0
        self._finished = False

    def request_access(self) -> None:
        if not os.access(self._file_path, os.R_OK):
            raise PermissionDeniedError(f"Cannot read audio file: {self._file_path}")

    def open(self) -> None:
        try:
            data, sample_rate = sf.read(self._file_path, dtype="float32", always_2d=True)
        except (RuntimeError, OSError) as e:
            raise DeviceUnavailableError(f"Cannot decode {self._file_path}: {e}") from e

        # Mix down to mono
        samples = data.mean(axis=1)
        if self._gain != 1.0:
            samples = samples * self._gain

        self._samples = samples.astype(np.float32)
        self._sample_rate = float(sample_rate)
        self._position = 0
        self._finished = len(self._samples) == 0
        logger.info(
            f"Opened {self._file_path}: {len(self._samples)} samples at {sample_rate} Hz"
        )

    def read(self, out: np.ndarray) -> None:
        if self._samples is None:
            raise TunerStateError("Audio file is not open")

        samples = self._samples
        total = len(samples)
        size = len(out)

        if self._loop and total:
            indices = (self._position + np.arange(size)) % total
            out[:] = samples[indices]
            self._position = (self._position + self._hop_size) % total
            return

        chunk = samples[self._position:self._position + size]
        out[:len(chunk)] = chunk
        out[len(chunk):] = 0.0
        self._position += self._hop_size
        if self._position >= total:
            self._finished = True

    def close(self) -> None:
        if self._samples is None:
            return
        self._samples = None
        logger.info(f"Closed {self._file_path}")

    @property
    def finished(self) -> bool:
        """True once a non-looping file has been read to the end."""
        return self._finished

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def is_open(self) -> bool:
        return self._samples is not None
