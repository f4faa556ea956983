"""Real-time chromatic tuner: pitch detection, nearest-note resolution and cent deviation."""

from .note_types import NoteEntry, DetectionSample, TunerReading
from .note_table import NOTE_TABLE, build_note_table
from .tuning import NearestNoteResolver, cents_between, needle_angle, is_in_tune, reading_from_sample
from .sampling_loop import SamplingLoop, LoopState
from .presentation import TunerDisplay

__version__ = "0.1.0"

__all__ = [
    "NoteEntry",
    "DetectionSample",
    "TunerReading",
    "NOTE_TABLE",
    "build_note_table",
    "NearestNoteResolver",
    "cents_between",
    "needle_angle",
    "is_in_tune",
    "reading_from_sample",
    "SamplingLoop",
    "LoopState",
    "TunerDisplay",
]
