"""
Closed-form harmonic series of the carrier waveforms.

Amplitudes follow the cosine-phase convention of ``waveforms``: the
fundamental of every kind is ``cos(angle)``, and harmonic ``n`` of a carrier
with phase ``phi`` is ``cos(n * angle)`` shifted by ``n * phi``.

The sawtooth series keeps every coefficient positive and in cosine phase.
The exact series is a sine series with alternating signs; the simplified
one has the same magnitude spectrum, which is what the band-pass shapes.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable

from .config import SignalComponent, WaveformKind

_LOGGER = logging.getLogger("ftfilter.harmonics")

MAX_HARMONICS = 100


@dataclass(frozen=True, slots=True)
class Harmonic:
    order: int
    frequency: float
    relative_amplitude: float
    component: SignalComponent | None = None

    @property
    def phase(self) -> float:
        if self.component is None:
            return 0.0
        return self.order * self.component.phase


def _sine_amplitude(n: int) -> float:
    return 1.0 if n == 1 else 0.0


def _square_amplitude(n: int) -> float:
    if n % 2 == 0:
        return 0.0
    sign = -1.0 if (n - 1) // 2 % 2 else 1.0
    return sign * 4 / (math.pi * n)


def _triangle_amplitude(n: int) -> float:
    if n % 2 == 0:
        return 0.0
    return 8 / (math.pi**2 * n**2)


def _sawtooth_amplitude(n: int) -> float:
    return 2 / (math.pi * n)


AMPLITUDE_FUNCTIONS: Mapping[WaveformKind, Callable[[int], float]] = MappingProxyType(
    {
        "sine": _sine_amplitude,
        "square": _square_amplitude,
        "triangle": _triangle_amplitude,
        "sawtooth": _sawtooth_amplitude,
    }
)


def harmonics(
    base_freq: float,
    kind: WaveformKind,
    nyquist: float,
    *,
    component: SignalComponent | None = None,
) -> list[Harmonic]:
    """Harmonics of ``kind`` at ``base_freq`` strictly below ``nyquist``.

    Orders with a zero coefficient (even orders of square/triangle, every
    overtone of sine) are omitted. At most ``MAX_HARMONICS`` orders are
    considered.
    """
    try:
        amplitude_fn = AMPLITUDE_FUNCTIONS[kind]
    except KeyError:
        raise ValueError(f"Unknown waveform: {kind}. Valid: {list(AMPLITUDE_FUNCTIONS)}") from None
    if base_freq <= 0:
        return []
    series: list[Harmonic] = []
    for n in range(1, MAX_HARMONICS + 1):
        freq = base_freq * n
        if freq >= nyquist:
            break
        amplitude = amplitude_fn(n)
        if amplitude == 0.0:
            continue
        series.append(Harmonic(n, freq, amplitude, component))
    return series


def decompose(
    component: SignalComponent, pitch_multiplier: float, nyquist: float
) -> list[Harmonic]:
    """Harmonic series of one component after pitch shifting by ``pitch_multiplier``."""
    series = harmonics(
        component.frequency * pitch_multiplier,
        component.waveform,
        nyquist,
        component=component,
    )
    _LOGGER.debug(
        "%s at %.2f Hz -> %d harmonics below %.1f Hz",
        component.waveform,
        component.frequency * pitch_multiplier,
        len(series),
        nyquist,
    )
    return series
