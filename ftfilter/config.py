from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated, Any, Literal, cast

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import InvalidWindowError

_LOGGER = logging.getLogger("ftfilter.config")

WaveformKind = Literal["sine", "square", "triangle", "sawtooth"]
EnvelopeKind = Literal["gaussian", "adsr", "square"]
FilterKind = Literal["square", "gaussian"]
SignalMode = Literal["ideal", "gated"]
PlaybackKind = Literal["original", "reconstructed"]

DEFAULT_SAMPLE_RATE = 256.0
DEFAULT_SIZE = 1024
MAX_DURATION = DEFAULT_SIZE / DEFAULT_SAMPLE_RATE

# Window edits that would invert start/end push the other bound by this much.
MIN_WINDOW_GAP = 0.1
# Shorter windows skip the envelope (its normalized time would divide by ~0).
MIN_ENVELOPE_WINDOW = 0.01


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# -----------------------------------------------------------------------------
# Envelopes: tagged union keyed by ``kind``
# -----------------------------------------------------------------------------


class GaussianEnvelope(BaseModel):
    """Bell-shaped gain centred at ``center`` (normalized window time)."""

    kind: Literal["gaussian"] = "gaussian"
    center: float = Field(default=0.5, ge=0.0, le=1.0)
    width: float = Field(default=0.15, gt=0.0)

    model_config = ConfigDict(frozen=True, extra="ignore")


class AdsrEnvelope(BaseModel):
    """Attack/decay/release are fractions of the active window; sustain is a level."""

    kind: Literal["adsr"] = "adsr"
    attack: float = Field(default=0.1, ge=0.0, le=1.0, alias="a")
    decay: float = Field(default=0.1, ge=0.0, le=1.0, alias="d")
    sustain: float = Field(default=0.7, ge=0.0, le=1.0, alias="s")
    release: float = Field(default=0.2, ge=0.0, le=1.0, alias="r")

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class SquareEnvelope(BaseModel):
    """Flat envelope: constant gain of one."""

    kind: Literal["square"] = "square"

    model_config = ConfigDict(frozen=True, extra="ignore")


Envelope = Annotated[
    GaussianEnvelope | AdsrEnvelope | SquareEnvelope,
    Field(discriminator="kind"),
]


# -----------------------------------------------------------------------------
# Signal components
# -----------------------------------------------------------------------------


class SignalComponent(BaseModel):
    """One additive source in the composed signal.

    Field aliases match the persisted record shape (``freq``, ``amp``,
    ``waveType`` ...) so exported sessions load back without translation.
    """

    frequency: float = Field(default=10.0, gt=0.0, alias="freq")
    amplitude: float = Field(default=0.5, ge=0.0, alias="amp")
    phase: float = 0.0
    waveform: WaveformKind = Field(default="sine", alias="waveType")
    start_time: float = Field(default=0.0, ge=0.0, alias="startTime")
    end_time: float = Field(default=MAX_DURATION, gt=0.0, alias="endTime")
    envelope: Envelope = Field(default_factory=SquareEnvelope)

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _merge_envelope_record(cls, data: object) -> object:
        if not isinstance(data, Mapping):
            return data
        merged: dict[str, Any] = dict(cast(Mapping[str, Any], data))
        envelope_type = merged.pop("envelopeType", None)
        params = merged.pop("envelopeParams", None)
        if envelope_type is None and params is None:
            return merged
        if params is None:
            params = {}
        if not isinstance(params, Mapping):
            raise ValueError("envelopeParams must be an object")
        envelope: dict[str, Any] = dict(cast(Mapping[str, Any], params))
        envelope["kind"] = envelope_type if envelope_type is not None else "square"
        merged["envelope"] = envelope
        return merged

    @model_validator(mode="after")
    def _check_window(self) -> "SignalComponent":
        if not self.start_time < self.end_time:
            raise ValueError(
                f"startTime ({self.start_time}) must be before endTime ({self.end_time})"
            )
        return self

    @property
    def window_duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def is_enveloped(self) -> bool:
        return self.window_duration >= MIN_ENVELOPE_WINDOW

    def with_start_time(
        self, start: float, *, max_duration: float = MAX_DURATION
    ) -> "SignalComponent":
        start = _clamp(start, 0.0, max_duration)
        end = min(self.end_time, max_duration)
        if start >= end:
            end = min(start + MIN_WINDOW_GAP, max_duration)
            if start >= end:
                start = max(0.0, end - MIN_WINDOW_GAP)
        return self._with_window(start, end)

    def with_end_time(
        self, end: float, *, max_duration: float = MAX_DURATION
    ) -> "SignalComponent":
        end = _clamp(end, 0.0, max_duration)
        start = self.start_time
        if start >= end:
            start = max(0.0, end - MIN_WINDOW_GAP)
            if start >= end:
                end = min(start + MIN_WINDOW_GAP, max_duration)
        return self._with_window(start, end)

    def clamp_window(self, max_duration: float) -> "SignalComponent":
        if self.end_time <= max_duration:
            return self
        return self.with_end_time(self.end_time, max_duration=max_duration)

    def _with_window(self, start: float, end: float) -> "SignalComponent":
        if not start < end:
            raise InvalidWindowError(f"cannot build a window from start={start} and end={end}")
        return self.model_copy(update={"start_time": start, "end_time": end})

    def to_record(self) -> dict[str, Any]:
        return {
            "freq": self.frequency,
            "amp": self.amplitude,
            "phase": self.phase,
            "waveType": self.waveform,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "envelopeType": self.envelope.kind,
            "envelopeParams": self.envelope.model_dump(by_alias=True, exclude={"kind"}),
        }


class ComponentUpdate(BaseModel):
    """Partial edit of a SignalComponent; unset fields are left alone."""

    frequency: float | None = Field(default=None, gt=0.0)
    amplitude: float | None = Field(default=None, ge=0.0)
    phase: float | None = None
    waveform: WaveformKind | None = None
    start_time: float | None = None
    end_time: float | None = None
    envelope: Envelope | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    def apply_to(
        self, component: SignalComponent, *, max_duration: float = MAX_DURATION
    ) -> SignalComponent:
        changes = self.model_dump(
            exclude_none=True, exclude={"start_time", "end_time", "envelope"}
        )
        if self.envelope is not None:
            changes["envelope"] = self.envelope
        updated = component.model_copy(update=changes)
        if self.start_time is not None:
            updated = updated.with_start_time(self.start_time, max_duration=max_duration)
        if self.end_time is not None:
            updated = updated.with_end_time(self.end_time, max_duration=max_duration)
        return updated


# -----------------------------------------------------------------------------
# Filter, display and audio settings
# -----------------------------------------------------------------------------


class FilterSpec(BaseModel):
    kind: FilterKind = "square"
    center: float = Field(default=5.0, ge=0.0)
    width: float = Field(default=4.0, gt=0.0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def sigma(self) -> float:
        """Standard deviation used by the gaussian response."""
        return max(0.1, self.width / 4)

    @property
    def low_edge(self) -> float:
        return self.center - self.width / 2

    @property
    def high_edge(self) -> float:
        return self.center + self.width / 2


class DisplaySettings(BaseModel):
    time_base: float = Field(default=2.0, gt=0.0)
    smoothing: float = Field(default=0.0, ge=0.0, lt=1.0)
    show_axis: bool = True
    # None normalizes magnitudes by N/2 so a unit cosine reads 1.0.
    magnitude_scale: float | None = Field(default=None, gt=0.0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class AudioSettings(BaseModel):
    pitch_multiplier: float = Field(default=20.0, gt=0.0)
    sample_rate: int = Field(default=44_100, gt=0)
    duration: float = Field(default=MAX_DURATION, gt=0.0)
    master_volume: float = Field(default=0.5, ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True, extra="forbid")


def default_components() -> tuple[SignalComponent, ...]:
    """Components shown on first run."""
    return (
        SignalComponent(frequency=2.0, amplitude=1.0),
        SignalComponent(frequency=5.0, amplitude=0.5),
        SignalComponent(frequency=15.0, amplitude=0.3),
    )


def reset_components() -> tuple[SignalComponent, ...]:
    """Components restored by a reset."""
    return (
        SignalComponent(frequency=2.0, amplitude=1.0),
        SignalComponent(frequency=5.0, amplitude=0.5),
    )


# -----------------------------------------------------------------------------
# Signal model snapshot
# -----------------------------------------------------------------------------


class SignalModel(BaseModel):
    """Immutable snapshot of everything the pipeline reads.

    Every edit returns a new snapshot; the analysis and synthesis passes only
    ever see a complete, validated model.
    """

    components: tuple[SignalComponent, ...] = Field(default_factory=default_components)
    filter_spec: FilterSpec = Field(default_factory=FilterSpec)
    sample_rate: float = Field(default=DEFAULT_SAMPLE_RATE, gt=0.0)
    size: int = Field(default=DEFAULT_SIZE, gt=0)
    mode: SignalMode = "ideal"
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _check_model(self) -> "SignalModel":
        if self.size & (self.size - 1):
            raise ValueError(f"size must be a power of two, got {self.size}")
        limit = self.max_duration
        if self.display.time_base > limit:
            raise ValueError(
                f"time_base must not exceed the {limit:g}s timeline, got {self.display.time_base:g}"
            )
        clamped = tuple(component.clamp_window(limit) for component in self.components)
        if clamped != self.components:
            _LOGGER.info("Clamped component windows to %.3fs", limit)
            object.__setattr__(self, "components", clamped)
        return self

    @property
    def max_duration(self) -> float:
        return self.size / self.sample_rate

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2

    @classmethod
    def reset(cls) -> "SignalModel":
        return cls(components=reset_components())

    def with_components(self, components: tuple[SignalComponent, ...]) -> "SignalModel":
        limit = self.max_duration
        clamped = tuple(component.clamp_window(limit) for component in components)
        return self.model_copy(update={"components": clamped})

    def add_component(self, component: SignalComponent | None = None) -> "SignalModel":
        new = component if component is not None else SignalComponent()
        return self.with_components((*self.components, new))

    def remove_component(self, index: int) -> "SignalModel":
        components = list(self.components)
        del components[index]
        return self.with_components(tuple(components))

    def update_component(
        self, index: int, update: ComponentUpdate | Mapping[str, Any]
    ) -> "SignalModel":
        if not isinstance(update, ComponentUpdate):
            update = ComponentUpdate.model_validate(update)
        components = list(self.components)
        components[index] = update.apply_to(components[index], max_duration=self.max_duration)
        return self.with_components(tuple(components))

    def with_filter(
        self,
        *,
        center: float | None = None,
        width: float | None = None,
        kind: FilterKind | None = None,
    ) -> "SignalModel":
        current = self.filter_spec
        spec = FilterSpec.model_validate(
            {
                "kind": kind if kind is not None else current.kind,
                "center": center if center is not None else current.center,
                "width": width if width is not None else current.width,
            }
        )
        if center is not None:
            spec = spec.model_copy(update={"center": _clamp(spec.center, 0.0, self.nyquist)})
        return self.model_copy(update={"filter_spec": spec})

    def with_mode(self, mode: SignalMode) -> "SignalModel":
        return SignalModel.model_validate({**self._fields(), "mode": mode})

    def with_display(self, **changes: Any) -> "SignalModel":
        display = DisplaySettings.model_validate({**self.display.model_dump(), **changes})
        return SignalModel.model_validate({**self._fields(), "display": display})

    def with_audio(self, **changes: Any) -> "SignalModel":
        audio = AudioSettings.model_validate({**self.audio.model_dump(), **changes})
        return self.model_copy(update={"audio": audio})

    def _fields(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in type(self).model_fields}
