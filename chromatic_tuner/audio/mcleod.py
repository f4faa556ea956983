"""McLeod Pitch Method detector implemented with numpy."""

from __future__ import annotations
from typing import ClassVar, Tuple

import numpy as np

from ..core.interfaces import IPitchDetector
from .utils import DEFAULT_BUFFER_SIZE, clamp_confidence


class McLeodPitchDetector(IPitchDetector):
    """McLeod Pitch Method over a normalised square difference function.

    Pure numpy; the clarity of the chosen key maximum is reported as the
    confidence.
    """

    CONFIG_KEYS: ClassVar[Tuple[str, ...]] = ("cutoff", "min_frequency")

    def __init__(
        self,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        cutoff: float = 0.93,
        min_frequency: float = 0.0,
    ) -> None:
        """
        Args:
            buffer_size: Samples per buffer; every call must pass this many
            cutoff: Fraction of the highest key maximum a peak must reach
            min_frequency: Lowest frequency to report, 0 for no limit
        """
        if not 0.0 < cutoff <= 1.0:
            raise ValueError("cutoff must be in (0.0, 1.0]")
        self._buffer_size = buffer_size
        self._cutoff = cutoff
        self._min_frequency = min_frequency
        # Zero-padded FFT length for a linear (non-circular) autocorrelation
        self._fft_size = 1 << int(np.ceil(np.log2(2 * buffer_size)))

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def cutoff(self) -> float:
        return self._cutoff

    def _nsdf(self, x: np.ndarray) -> np.ndarray:
        n = len(x)
        spectrum = np.fft.rfft(x, self._fft_size)
        acf = np.fft.irfft(spectrum * np.conj(spectrum), self._fft_size)[:n]

        # m(tau) = sum over the overlap of x[j]^2 + x[j + tau]^2
        squares = np.cumsum(x * x)
        total = squares[-1]
        head = squares[::-1]
        tail = total - np.concatenate(([0.0], squares[:-1]))
        denominator = head + tail

        nsdf = np.zeros(n)
        valid = denominator > 0
        nsdf[valid] = 2.0 * acf[valid] / denominator[valid]
        return nsdf

    def _key_maxima(self, nsdf: np.ndarray) -> np.ndarray:
        positive = nsdf > 0
        rising = np.flatnonzero(~positive[:-1] & positive[1:]) + 1
        falling = np.flatnonzero(positive[:-1] & ~positive[1:]) + 1

        peaks = []
        for start in rising:
            ends = falling[falling > start]
            end = ends[0] if len(ends) else len(nsdf)
            peaks.append(start + int(np.argmax(nsdf[start:end])))
        return np.asarray(peaks, dtype=int)

    def find_pitch(self, buffer: np.ndarray, sample_rate: float) -> Tuple[float, float]:
        if len(buffer) != self._buffer_size:
            raise ValueError(
                f"Expected {self._buffer_size} samples, got {len(buffer)}"
            )

        x = np.asarray(buffer, dtype=np.float64)
        if not np.any(x):
            return 0.0, 0.0

        nsdf = self._nsdf(x)
        peaks = self._key_maxima(nsdf)
        if len(peaks) == 0:
            return 0.0, 0.0

        threshold = self._cutoff * nsdf[peaks].max()
        tau = int(peaks[np.argmax(nsdf[peaks] >= threshold)])

        # Parabolic interpolation around the chosen lag
        period, clarity = float(tau), float(nsdf[tau])
        if 0 < tau < len(nsdf) - 1:
            a, b, c = nsdf[tau - 1], nsdf[tau], nsdf[tau + 1]
            curvature = a - 2.0 * b + c
            if curvature != 0:
                shift = 0.5 * (a - c) / curvature
                period = tau + shift
                clarity = b - 0.25 * (a - c) * shift

        frequency = sample_rate / period if period > 0 else 0.0
        if frequency < self._min_frequency:
            return 0.0, 0.0
        return float(frequency), clamp_confidence(clarity)
