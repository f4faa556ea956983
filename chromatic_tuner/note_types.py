"""Type definitions for the chromatic tuner."""

from typing import Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class NoteEntry:
    """A named note and its reference frequency."""

    name: str  # Note name with octave (e.g., 'C#4')
    frequency: float  # Reference frequency in Hz

    def __str__(self):
        return f"{self.name} ({self.frequency:.2f}Hz)"


@dataclass(frozen=True)
class DetectionSample:
    """One pitch estimate as reported by a pitch detector."""

    frequency: Optional[float]  # Estimated fundamental in Hz, None if nothing found
    confidence: float  # Detector clarity (0-1)

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0.0 and 1.0, got {self.confidence}"
            )


@dataclass(frozen=True)
class TunerReading:
    """The unit of state handed to the presentation layer.

    A reading is either fully populated or fully empty. Each sampling
    cycle produces a new instance that replaces the previous one.
    """

    frequency: Optional[float] = None  # Detected frequency in Hz
    note_name: Optional[str] = None  # Nearest note (e.g., 'A4')
    cent_deviation: Optional[float] = None  # Signed deviation from the note

    def __post_init__(self):
        fields = (self.frequency, self.note_name, self.cent_deviation)
        populated = sum(value is not None for value in fields)
        if populated not in (0, len(fields)):
            raise ValueError(
                "TunerReading fields must be all set or all empty, got "
                f"frequency={self.frequency}, note_name={self.note_name}, "
                f"cent_deviation={self.cent_deviation}"
            )

    @classmethod
    def empty(cls) -> "TunerReading":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.note_name is None
