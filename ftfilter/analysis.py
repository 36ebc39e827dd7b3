# pyright: reportUnknownVariableType=false
# pyright: reportUnknownMemberType=false

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, TypeAlias, cast

import numpy as np
from numpy.typing import NDArray
from scipy.signal import lfilter  # type: ignore[import]

from .config import SignalModel
from .filters import apply_filter, bin_frequencies, response
from .synth import RESPONSE_THRESHOLD, compose, sample_times
from .transform import ComplexArray, forward, inverse, magnitude

_LOGGER = logging.getLogger("ftfilter.analysis")

FloatArray: TypeAlias = NDArray[np.float64]


@dataclass(frozen=True, slots=True)
class Analysis:
    """One visualization pass over a SignalModel snapshot."""

    times: FloatArray
    original: FloatArray
    spectrum: ComplexArray
    filtered_spectrum: ComplexArray
    reconstructed: FloatArray
    frequencies: FloatArray
    magnitudes: FloatArray
    passband: NDArray[np.bool_]

    def visible(self, time_base: float) -> tuple[FloatArray, FloatArray, FloatArray]:
        """Samples with ``t <= time_base`` for the time-domain plots."""
        mask = self.times <= time_base
        return self.times[mask], self.original[mask], self.reconstructed[mask]

    def peaks(self, threshold: float = 0.01) -> list[tuple[float, float, bool]]:
        """(frequency, display magnitude, in passband) for local maxima above ``threshold``."""
        mags = self.magnitudes
        found: list[tuple[float, float, bool]] = []
        for k in range(mags.size):
            left = mags[k - 1] if k > 0 else -np.inf
            right = mags[k + 1] if k + 1 < mags.size else -np.inf
            if mags[k] >= threshold and mags[k] >= left and mags[k] > right:
                found.append((float(self.frequencies[k]), float(mags[k]), bool(self.passband[k])))
        return found


def smooth(values: FloatArray, factor: float) -> FloatArray:
    """One-pole smoother ``y[i] = f*y[i-1] + (1-f)*x[i]`` seeded with ``y[0] = x[0]``."""
    if factor <= 0 or values.size == 0:
        return values
    initial = np.array([factor * values[0]])
    smoothed, _ = cast(
        tuple[Any, Any],
        lfilter([1.0 - factor], [1.0, -factor], values, zi=initial),
    )
    return np.asarray(smoothed, dtype=np.float64)


def analyze(model: SignalModel) -> Analysis:
    """Compose, transform, filter and invert the signal described by ``model``."""
    size = model.size
    times = sample_times(size, model.sample_rate)
    original = compose(model.components, model.sample_rate, size, model.mode)
    spectrum = forward(original)
    filtered = apply_filter(spectrum, model.filter_spec, model.sample_rate)
    reconstructed = inverse(filtered).real

    half = size // 2 if size > 1 else 1
    frequencies = np.abs(bin_frequencies(size, model.sample_rate))[:half]
    scale = model.display.magnitude_scale
    raw = magnitude(spectrum[:half])
    magnitudes = raw / half if scale is None else raw * scale
    passband = np.asarray(response(frequencies, model.filter_spec)) >= RESPONSE_THRESHOLD

    factor = model.display.smoothing
    _LOGGER.debug(
        "Analysis: N=%d sr=%.1f components=%d smoothing=%.2f",
        size,
        model.sample_rate,
        len(model.components),
        factor,
    )
    return Analysis(
        times=times,
        original=smooth(original, factor),
        spectrum=spectrum,
        filtered_spectrum=filtered,
        reconstructed=smooth(reconstructed, factor),
        frequencies=frequencies,
        magnitudes=magnitudes,
        passband=passband,
    )
