"""Pitch-to-note mapping, cent deviation and needle angle calculations."""

from __future__ import annotations
import math
from typing import Optional, Sequence

from .logging_config import get_logger
from .core.errors import InvalidFrequencyError
from .note_table import NOTE_TABLE
from .note_types import DetectionSample, NoteEntry, TunerReading

logger = get_logger(__name__)

CENTS_PER_OCTAVE = 1200.0
MAX_NEEDLE_CENTS = 50.0
MAX_NEEDLE_ANGLE = 45.0
IN_TUNE_CENTS = 5.0


class NearestNoteResolver:
    """Finds the table entry closest in Hz to a detected frequency."""

    def __init__(self, table: Sequence[NoteEntry] = NOTE_TABLE) -> None:
        if not table:
            raise ValueError("Note table must not be empty")
        self._table = tuple(table)

    @property
    def table(self) -> Sequence[NoteEntry]:
        return self._table

    def resolve(self, frequency: float) -> NoteEntry:
        """Return the entry with the smallest absolute frequency difference.

        Ties keep the earlier entry.
        """
        closest = self._table[0]
        min_diff = abs(frequency - closest.frequency)
        for note in self._table:
            diff = abs(frequency - note.frequency)
            if diff < min_diff:
                min_diff = diff
                closest = note
        return closest


def cents_between(detected: float, reference: float) -> float:
    """Signed interval from ``reference`` to ``detected`` in cents.

    Negative values mean the detected pitch is flat, positive sharp.

    Raises:
        InvalidFrequencyError: If either frequency is not positive
    """
    if detected <= 0 or reference <= 0:
        raise InvalidFrequencyError(
            f"Frequencies must be positive (detected={detected}, reference={reference})"
        )
    return CENTS_PER_OCTAVE * math.log2(detected / reference)


def needle_angle(
    cents: Optional[float],
    max_cents: float = MAX_NEEDLE_CENTS,
    max_angle: float = MAX_NEEDLE_ANGLE,
) -> float:
    """Map a cent deviation onto a needle rotation in degrees.

    ``None`` rests the needle at 0. Deviations beyond ``max_cents`` pin the
    needle at ``max_angle``.
    """
    if cents is None:
        return 0.0
    clamped = max(-max_cents, min(max_cents, cents))
    return clamped / max_cents * max_angle


def is_in_tune(cents: Optional[float], tolerance: float = IN_TUNE_CENTS) -> bool:
    return cents is not None and abs(cents) < tolerance


def reading_from_sample(
    sample: DetectionSample,
    resolver: NearestNoteResolver,
    confidence_threshold: float,
    require_positive_frequency: bool = True,
) -> TunerReading:
    """Turn one detector result into a reading.

    The sample is accepted when its confidence exceeds the threshold and,
    with ``require_positive_frequency``, its frequency is above zero.
    Rejected samples give the empty reading.

    Raises:
        InvalidFrequencyError: If the positive-frequency guard is disabled
            and an accepted sample carries a non-positive frequency
    """
    if sample.confidence <= confidence_threshold or sample.frequency is None:
        return TunerReading.empty()
    if require_positive_frequency and sample.frequency <= 0:
        return TunerReading.empty()

    nearest = resolver.resolve(sample.frequency)
    cents = cents_between(sample.frequency, nearest.frequency)
    logger.debug(
        f"{sample.frequency:.2f}Hz -> {nearest.name} ({cents:+.1f} cents, "
        f"conf: {sample.confidence:.2f})"
    )
    return TunerReading(
        frequency=sample.frequency, note_name=nearest.name, cent_deviation=cents
    )
