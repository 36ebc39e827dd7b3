# pyright: reportUnknownVariableType=false
# pyright: reportUnknownMemberType=false

"""
Pure evaluators for carriers and amplitude envelopes.

Both accept scalars or numpy arrays for time and broadcast like numpy
ufuncs, so the compositor can evaluate a whole buffer in one call.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, TypeAlias

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import AdsrEnvelope, Envelope, GaussianEnvelope, SquareEnvelope, WaveformKind

FloatArray: TypeAlias = NDArray[np.float64]
WaveFn: TypeAlias = Callable[[FloatArray, float, float], FloatArray]


def _angle(t: FloatArray, freq: float, phase: float) -> FloatArray:
    return 2 * np.pi * freq * t + phase


def sine_wave(t: FloatArray, freq: float, phase: float) -> FloatArray:
    """Cosine carrier; the cosine convention keeps phase 0 at a peak."""
    return np.cos(_angle(t, freq, phase))


def square_wave(t: FloatArray, freq: float, phase: float) -> FloatArray:
    """sign(cos(angle)) with cos == 0 mapped to +1."""
    return np.where(np.cos(_angle(t, freq, phase)) >= 0.0, 1.0, -1.0)


def triangle_wave(t: FloatArray, freq: float, phase: float) -> FloatArray:
    cos_angle = np.clip(np.cos(_angle(t, freq, phase)), -1.0, 1.0)
    return (2 / np.pi) * np.arcsin(cos_angle)


def sawtooth_wave(t: FloatArray, freq: float, phase: float) -> FloatArray:
    u = freq * t + phase / (2 * np.pi)
    return 2 * (u - np.floor(u + 0.5))


WAVE_FUNCTIONS: Mapping[WaveformKind, WaveFn] = MappingProxyType(
    {
        "sine": sine_wave,
        "square": square_wave,
        "triangle": triangle_wave,
        "sawtooth": sawtooth_wave,
    }
)


def evaluate_waveform(t: ArrayLike, freq: float, phase: float, kind: WaveformKind) -> Any:
    """Carrier value in [-1, 1] at time ``t`` (seconds).

    Returns a float for scalar ``t`` and an array otherwise.
    """
    try:
        wave_fn = WAVE_FUNCTIONS[kind]
    except KeyError:
        raise ValueError(f"Unknown waveform: {kind}. Valid: {list(WAVE_FUNCTIONS)}") from None
    times = np.asarray(t, dtype=np.float64)
    values = wave_fn(times, freq, phase)
    if values.ndim == 0:
        return float(values)
    return values


def _gaussian_gain(t_norm: FloatArray, envelope: GaussianEnvelope) -> FloatArray:
    return np.exp(-((t_norm - envelope.center) ** 2) / (2 * envelope.width**2))


def _adsr_gain(t_norm: FloatArray, envelope: AdsrEnvelope) -> FloatArray:
    a = envelope.attack
    d = envelope.decay
    s = envelope.sustain
    r = envelope.release
    decay_end = a + d
    release_start = 1.0 - r

    # Zero-length segments never select any sample, so their ramps are only
    # evaluated where the guard below keeps the divisor positive.
    attack = t_norm / a if a > 0 else np.ones_like(t_norm)
    decay = 1.0 - (1.0 - s) * (t_norm - a) / d if d > 0 else np.full_like(t_norm, s)
    release = s * (1.0 - t_norm) / r if r > 0 else np.zeros_like(t_norm)

    gain = np.select(
        [t_norm < a, t_norm < decay_end, t_norm < release_start],
        [attack, decay, np.full_like(t_norm, s)],
        default=release,
    )
    return np.clip(gain, 0.0, 1.0)


def evaluate_envelope(t_norm: ArrayLike, envelope: Envelope) -> Any:
    """Gain in [0, 1] at normalized window time ``t_norm``."""
    times = np.asarray(t_norm, dtype=np.float64)
    flat = np.atleast_1d(times)
    match envelope:
        case GaussianEnvelope():
            gain = _gaussian_gain(flat, envelope)
        case AdsrEnvelope():
            gain = _adsr_gain(flat, envelope)
        case SquareEnvelope():
            gain = np.ones_like(flat)
        case _:
            raise ValueError(f"Unknown envelope: {envelope!r}")
    if times.ndim == 0:
        return float(gain[0])
    return gain.reshape(times.shape)
