# pyright: reportUnknownVariableType=false
# pyright: reportUnknownMemberType=false

"""
Architecture:

1. Compositor: weighted, gated, enveloped carriers summed into a buffer
2. Original audio: the compositor at audio rate with pitch-shifted carriers
3. Reconstructed audio: filter response applied per harmonic, then additive
   resynthesis. No transform is involved, so the band edges are continuous
   in frequency and free of bin-quantization pulsing.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray

from .config import FilterSpec, PlaybackKind, SignalComponent, SignalMode, SignalModel
from .errors import SynthesisCancelledError
from .filters import response
from .harmonics import Harmonic, decompose
from .waveforms import evaluate_envelope, evaluate_waveform

_LOGGER = logging.getLogger("ftfilter.synth")

FloatArray: TypeAlias = NDArray[np.float64]

RENDER_CHUNK = 8192
RESPONSE_THRESHOLD = 1e-3


# =============================================================================
# PART 1: COMPOSITOR
# =============================================================================


def window_gate(component: SignalComponent, t: FloatArray, mode: SignalMode) -> FloatArray:
    """Unit-amplitude gain of ``component`` over times ``t``.

    Ideal mode is always 1. Gated mode is 0 outside the active window and
    the envelope inside it; windows too short to normalize skip the envelope.
    """
    if mode == "ideal":
        return np.ones_like(t)
    inside = (t >= component.start_time) & (t <= component.end_time)
    if not component.is_enveloped:
        return inside.astype(np.float64)
    t_norm = (t - component.start_time) / component.window_duration
    envelope = evaluate_envelope(t_norm, component.envelope)
    return np.where(inside, envelope, 0.0)


def compose_at(
    components: Sequence[SignalComponent],
    t: FloatArray,
    mode: SignalMode,
    *,
    frequency_scale: float = 1.0,
) -> FloatArray:
    total = np.zeros_like(t)
    for component in components:
        carrier = evaluate_waveform(
            t, component.frequency * frequency_scale, component.phase, component.waveform
        )
        total += component.amplitude * carrier * window_gate(component, t, mode)
    return total


def sample_times(size: int, sample_rate: float) -> FloatArray:
    return np.arange(size, dtype=np.float64) / sample_rate


def compose(
    components: Sequence[SignalComponent],
    sample_rate: float,
    size: int,
    mode: SignalMode = "ideal",
) -> FloatArray:
    """Sampled sum of all components at ``t = i / sample_rate``."""
    return compose_at(components, sample_times(size, sample_rate), mode)


# =============================================================================
# PART 2: AUDIO RENDERING
# =============================================================================


@dataclass(frozen=True, slots=True)
class _HarmonicBank:
    """Surviving harmonics of one component, packed for vectorized synthesis."""

    component: SignalComponent
    frequencies: FloatArray
    weights: FloatArray
    phases: FloatArray

    def evaluate(self, t: FloatArray) -> FloatArray:
        angles = 2 * np.pi * self.frequencies[:, None] * t[None, :] + self.phases[:, None]
        return self.weights @ np.cos(angles)


def filtered_harmonics(
    components: Sequence[SignalComponent],
    filter_spec: FilterSpec,
    *,
    pitch_multiplier: float,
    nyquist: float,
) -> list[tuple[Harmonic, float]]:
    """Every harmonic whose filter response is above ``RESPONSE_THRESHOLD``.

    The response is evaluated at the harmonic's visual-domain frequency
    (audio frequency divided by ``pitch_multiplier``) so the band the user
    sees is the band they hear.
    """
    survivors: list[tuple[Harmonic, float]] = []
    for component in components:
        for harmonic in decompose(component, pitch_multiplier, nyquist):
            gain = response(harmonic.frequency / pitch_multiplier, filter_spec)
            if gain >= RESPONSE_THRESHOLD:
                survivors.append((harmonic, gain))
    return survivors


def _build_banks(survivors: Sequence[tuple[Harmonic, float]]) -> list[_HarmonicBank]:
    grouped: dict[int, list[tuple[Harmonic, float]]] = {}
    owners: dict[int, SignalComponent] = {}
    for harmonic, gain in survivors:
        owner = harmonic.component
        if owner is None:
            # No amplitude or window to scale it by.
            _LOGGER.debug(
                "Skipping harmonic %d at %.2f Hz without a component",
                harmonic.order,
                harmonic.frequency,
            )
            continue
        grouped.setdefault(id(owner), []).append((harmonic, gain))
        owners[id(owner)] = owner
    banks: list[_HarmonicBank] = []
    for key, members in grouped.items():
        owner = owners[key]
        banks.append(
            _HarmonicBank(
                component=owner,
                frequencies=np.array([h.frequency for h, _ in members]),
                weights=np.array(
                    [owner.amplitude * h.relative_amplitude * gain for h, gain in members]
                ),
                phases=np.array([h.phase for h, _ in members]),
            )
        )
    return banks


def _chunks(total: int, sample_rate: int) -> Iterator[tuple[int, FloatArray]]:
    for start in range(0, total, RENDER_CHUNK):
        stop = min(total, start + RENDER_CHUNK)
        yield start, np.arange(start, stop, dtype=np.float64) / sample_rate


def _check_cancel(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise SynthesisCancelledError("render superseded by a newer request")


def _soft_clip(mix: FloatArray, master_volume: float) -> FloatArray:
    return np.tanh(0.5 * mix) * master_volume


def render_original(
    components: Sequence[SignalComponent],
    *,
    pitch_multiplier: float,
    duration: float,
    sample_rate: int,
    master_volume: float = 1.0,
    mode: SignalMode = "ideal",
    cancel: threading.Event | None = None,
) -> FloatArray:
    """Unfiltered audio: the compositor with carriers pitch shifted by ``pitch_multiplier``."""
    total = int(round(duration * sample_rate))
    out = np.zeros(total, dtype=np.float64)
    for start, t in _chunks(total, sample_rate):
        _check_cancel(cancel)
        mix = compose_at(components, t, mode, frequency_scale=pitch_multiplier)
        out[start : start + t.size] = _soft_clip(mix, master_volume)
    return out


def render_reconstructed(
    components: Sequence[SignalComponent],
    filter_spec: FilterSpec,
    *,
    pitch_multiplier: float,
    duration: float,
    sample_rate: int,
    master_volume: float = 1.0,
    mode: SignalMode = "ideal",
    cancel: threading.Event | None = None,
) -> FloatArray:
    """Filtered audio resynthesized from the surviving harmonics."""
    total = int(round(duration * sample_rate))
    survivors = filtered_harmonics(
        components,
        filter_spec,
        pitch_multiplier=pitch_multiplier,
        nyquist=sample_rate / 2,
    )
    banks = _build_banks(survivors)
    _LOGGER.debug(
        "Rendering %d samples from %d harmonics across %d components",
        total,
        len(survivors),
        len(banks),
    )
    out = np.zeros(total, dtype=np.float64)
    for start, t in _chunks(total, sample_rate):
        _check_cancel(cancel)
        mix = np.zeros_like(t)
        for bank in banks:
            mix += bank.evaluate(t) * window_gate(bank.component, t, mode)
        out[start : start + t.size] = _soft_clip(mix, master_volume)
    return out


def render(
    components: Sequence[SignalComponent],
    pitch_multiplier: float,
    filter_spec: FilterSpec | None,
    duration: float,
    audio_sample_rate: int,
    master_volume: float,
    *,
    mode: SignalMode = "ideal",
    cancel: threading.Event | None = None,
) -> FloatArray:
    """Full-duration audio buffer; the filtered path is taken when ``filter_spec`` is set."""
    if filter_spec is None:
        return render_original(
            components,
            pitch_multiplier=pitch_multiplier,
            duration=duration,
            sample_rate=audio_sample_rate,
            master_volume=master_volume,
            mode=mode,
            cancel=cancel,
        )
    return render_reconstructed(
        components,
        filter_spec,
        pitch_multiplier=pitch_multiplier,
        duration=duration,
        sample_rate=audio_sample_rate,
        master_volume=master_volume,
        mode=mode,
        cancel=cancel,
    )


def render_model(
    model: SignalModel,
    kind: PlaybackKind,
    *,
    duration: float | None = None,
    cancel: threading.Event | None = None,
) -> FloatArray:
    settings = model.audio
    return render(
        model.components,
        settings.pitch_multiplier,
        model.filter_spec if kind == "reconstructed" else None,
        settings.duration if duration is None else duration,
        settings.sample_rate,
        settings.master_volume,
        mode=model.mode,
        cancel=cancel,
    )
