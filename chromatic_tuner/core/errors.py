"""Error types raised by the tuner components."""


class TunerError(Exception):
    """Base class for all tuner errors."""


class PermissionDeniedError(TunerError):
    """Access to the audio input was refused by the user or the OS."""


class DeviceUnavailableError(TunerError):
    """The audio pipeline could not be opened after access was granted."""


class InvalidFrequencyError(TunerError, ValueError):
    """A non-positive frequency reached a calculation that needs log2."""


class TunerStateError(TunerError, RuntimeError):
    """An operation was attempted in a lifecycle state that forbids it."""
