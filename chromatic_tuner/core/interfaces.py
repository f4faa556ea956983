"""Defines the core interfaces for the chromatic tuner."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, Tuple

import numpy as np


class IAudioSource(ABC):
    """Interface for audio sources that expose the most recent sample buffer."""

    @abstractmethod
    def request_access(self) -> None:
        """Ask for access to the input.

        Raises:
            PermissionDeniedError: If access is refused
        """
        pass

    @abstractmethod
    def open(self) -> None:
        """Open the audio pipeline.

        Raises:
            DeviceUnavailableError: If the pipeline cannot be opened
        """
        pass

    @abstractmethod
    def read(self, out: np.ndarray) -> None:
        """Fill ``out`` with the most recent ``buffer_size`` samples."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the pipeline. Safe to call more than once."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> float:
        """Sample rate of the opened pipeline in Hz."""
        pass

    @property
    @abstractmethod
    def buffer_size(self) -> int:
        """Number of samples in each buffer."""
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Check if the pipeline is open."""
        pass


class IPitchDetector(ABC):
    """Interface for pitch estimation over a fixed-size buffer."""

    @property
    @abstractmethod
    def buffer_size(self) -> int:
        """Buffer length the detector was built for."""
        pass

    @abstractmethod
    def find_pitch(self, buffer: np.ndarray, sample_rate: float) -> Tuple[float, float]:
        """Estimate the fundamental of ``buffer``.

        Returns:
            Tuple of (frequency in Hz, confidence 0-1)
        """
        pass


class IScheduledTask(ABC):
    """Handle for a periodic task that can be cancelled once."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop the task. Idempotent; no invocation happens after it returns."""
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class IFrameScheduler(ABC):
    """Interface for schedulers that call back once per display frame."""

    @abstractmethod
    def schedule(self, callback: Callable[[], None]) -> IScheduledTask:
        """Run ``callback`` once per frame until the returned task is cancelled."""
        pass
