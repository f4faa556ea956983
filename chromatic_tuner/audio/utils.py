"""Shared helpers for the audio components."""

import numpy as np

# Every pipeline in the tuner analyses buffers of this many samples
DEFAULT_BUFFER_SIZE = 2048


def clamp_confidence(value: float) -> float:
    """Clamp a detector score into [0, 1]; non-finite scores become 0."""
    if not np.isfinite(value):
        return 0.0
    return float(min(1.0, max(0.0, value)))
