"""Core components for the chromatic tuner."""

# Import interfaces for easier access
from .interfaces import (
    IAudioSource,
    IPitchDetector,
    IFrameScheduler,
    IScheduledTask,
)
from .errors import (
    TunerError,
    PermissionDeniedError,
    DeviceUnavailableError,
    InvalidFrequencyError,
    TunerStateError,
)

__all__ = [
    "IAudioSource",
    "IPitchDetector",
    "IFrameScheduler",
    "IScheduledTask",
    "TunerError",
    "PermissionDeniedError",
    "DeviceUnavailableError",
    "InvalidFrequencyError",
    "TunerStateError",
]
