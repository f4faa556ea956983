"""Mock components for unit tests. Allow manual control of audio, detection and frames."""

from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .core.errors import DeviceUnavailableError, PermissionDeniedError, TunerStateError
from .core.interfaces import IAudioSource, IFrameScheduler, IPitchDetector, IScheduledTask


class MockAudioSource(IAudioSource):
    """An audio source that records lifecycle calls and can be told to fail."""

    def __init__(
        self,
        buffer_size: int = 2048,
        sample_rate: float = 44100.0,
        deny_access: bool = False,
        fail_open: bool = False,
        samples: Optional[np.ndarray] = None,
    ):
        self._buffer_size = buffer_size
        self._sample_rate = sample_rate
        self.deny_access = deny_access
        self.fail_open = fail_open
        self.samples = samples
        self.on_request_access: Optional[Callable[[], None]] = None
        self.on_open: Optional[Callable[[], None]] = None

        self.access_requests = 0
        self.open_calls = 0
        self.close_calls = 0
        self.reads = 0
        self._open = False

    def request_access(self) -> None:
        self.access_requests += 1
        if self.on_request_access:
            self.on_request_access()
        if self.deny_access:
            raise PermissionDeniedError("Microphone access denied")

    def open(self) -> None:
        self.open_calls += 1
        if self.on_open:
            self.on_open()
        if self.fail_open:
            raise DeviceUnavailableError("No input device")
        self._open = True

    def read(self, out: np.ndarray) -> None:
        if not self._open:
            raise TunerStateError("Audio input is not open")
        self.reads += 1
        if self.samples is None:
            out[:] = 0.0
        else:
            out[:] = self.samples[: len(out)]

    def close(self) -> None:
        self.close_calls += 1
        self._open = False

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def is_open(self) -> bool:
        return self._open


class MockPitchDetector(IPitchDetector):
    """Returns scripted (frequency, confidence) pairs, repeating the last one."""

    def __init__(
        self,
        results: Sequence[Tuple[float, float]] = ((0.0, 0.0),),
        buffer_size: int = 2048,
    ):
        self.results: List[Tuple[float, float]] = list(results)
        self._buffer_size = buffer_size
        self.calls: List[float] = []

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    def find_pitch(self, buffer: np.ndarray, sample_rate: float) -> Tuple[float, float]:
        self.calls.append(sample_rate)
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


class ManualTask(IScheduledTask):
    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.cancel_calls = 0
        self._cancelled = False

    def cancel(self) -> None:
        self.cancel_calls += 1
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(IFrameScheduler):
    """A scheduler whose frames are advanced by the test."""

    def __init__(self):
        self.tasks: List[ManualTask] = []

    def schedule(self, callback: Callable[[], None]) -> ManualTask:
        task = ManualTask(callback)
        self.tasks.append(task)
        return task

    def advance(self, frames: int = 1) -> None:
        """Run every live task ``frames`` times."""
        for _ in range(frames):
            for task in self.tasks:
                if not task.cancelled:
                    task.callback()
