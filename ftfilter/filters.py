from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import FilterSpec
from .transform import ComplexArray


def bin_frequencies(size: int, sample_rate: float) -> NDArray[np.float64]:
    """Signed frequency of each bin in standard FFT layout.

    Bins ``k <= N/2`` map to ``k * sr / N``; the upper half maps to the
    negative frequencies ``(k - N) * sr / N``.
    """
    k = np.arange(size, dtype=np.float64)
    signed = np.where(k > size / 2, k - size, k)
    return signed * sample_rate / size


def response(abs_freq: ArrayLike, spec: FilterSpec) -> Any:
    """Filter gain at non-negative frequency ``abs_freq``.

    Returns a float for scalar input and an array otherwise.
    """
    freqs = np.asarray(abs_freq, dtype=np.float64)
    if spec.kind == "square":
        gain = np.where((freqs >= spec.low_edge) & (freqs <= spec.high_edge), 1.0, 0.0)
    else:
        sigma = spec.sigma
        gain = np.exp(-((freqs - spec.center) ** 2) / (2 * sigma**2))
    if gain.ndim == 0:
        return float(gain)
    return gain


def apply_filter(spectrum: ArrayLike, spec: FilterSpec, sample_rate: float) -> ComplexArray:
    """Scale each bin by the response at its absolute frequency.

    Mirrored bins share ``|f|`` and therefore the same gain, so a
    conjugate-symmetric input stays conjugate-symmetric.
    """
    bins: ComplexArray = np.asarray(spectrum, dtype=np.complex128).reshape(-1)
    abs_freq = np.abs(bin_frequencies(bins.size, sample_rate))
    return bins * response(abs_freq, spec)
