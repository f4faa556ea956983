"""What a tuner display shows for a given reading."""

from dataclasses import dataclass

from .note_types import TunerReading
from .tuning import IN_TUNE_CENTS, MAX_NEEDLE_ANGLE, is_in_tune, needle_angle

NO_NOTE_TEXT = "--"
AWAITING_INPUT_TEXT = "Waiting for input..."
IN_TUNE_TEXT = "OK"
OUT_OF_TUNE_TEXT = "..."


@dataclass(frozen=True)
class TunerDisplay:
    """Display state derived from a single TunerReading."""

    note_text: str
    frequency_text: str
    needle_angle: float
    is_tuned: bool
    status_text: str

    @classmethod
    def from_reading(
        cls, reading: TunerReading, in_tune_cents: float = IN_TUNE_CENTS
    ) -> "TunerDisplay":
        if reading.is_empty:
            return cls(
                note_text=NO_NOTE_TEXT,
                frequency_text="",
                needle_angle=0.0,
                is_tuned=False,
                status_text=AWAITING_INPUT_TEXT,
            )

        tuned = is_in_tune(reading.cent_deviation, in_tune_cents)
        return cls(
            note_text=reading.note_name,
            frequency_text=f"{reading.frequency:.2f} Hz",
            needle_angle=needle_angle(reading.cent_deviation),
            is_tuned=tuned,
            status_text=IN_TUNE_TEXT if tuned else OUT_OF_TUNE_TEXT,
        )

    def render_line(self, width: int = 31) -> str:
        """A one-line text meter, e.g. ``A4   440.00 Hz  [-----|-----]  OK``."""
        half = width // 2
        position = half + int(round(self.needle_angle / MAX_NEEDLE_ANGLE * half))
        meter = ["-"] * width
        meter[half] = "|"
        if self.status_text != AWAITING_INPUT_TEXT:
            meter[position] = "^"
        return (
            f"{self.note_text:<4} {self.frequency_text:>10}  "
            f"[{''.join(meter)}]  {self.status_text}"
        )
