from __future__ import annotations

from .analysis import Analysis, analyze
from .audio import SAMPLE_RATE, Audio, write_wav
from .config import (
    AdsrEnvelope,
    AudioSettings,
    ComponentUpdate,
    DisplaySettings,
    EnvelopeKind,
    FilterKind,
    FilterSpec,
    GaussianEnvelope,
    PlaybackKind,
    SignalComponent,
    SignalMode,
    SignalModel,
    SquareEnvelope,
    WaveformKind,
)
from .errors import (
    DegenerateEnvelopeError,
    FtFilterError,
    InvalidTransformLengthError,
    InvalidWindowError,
    MalformedImportError,
    PlaybackError,
    SynthesisCancelledError,
)
from .filters import apply_filter, bin_frequencies, response
from .harmonics import Harmonic, decompose, harmonics
from .logging_utils import configure_logging as _configure_logging
from .playback import PlaybackController
from .session import (
    export_components,
    import_components,
    load_session,
    parse_components,
    save_session,
)
from .synth import compose, render, render_model
from .transform import forward, inverse
from .waveforms import evaluate_envelope, evaluate_waveform

__all__ = [
    "SAMPLE_RATE",
    "AdsrEnvelope",
    "Analysis",
    "Audio",
    "AudioSettings",
    "ComponentUpdate",
    "DegenerateEnvelopeError",
    "DisplaySettings",
    "EnvelopeKind",
    "FilterKind",
    "FilterSpec",
    "FtFilterError",
    "GaussianEnvelope",
    "Harmonic",
    "InvalidTransformLengthError",
    "InvalidWindowError",
    "MalformedImportError",
    "PlaybackController",
    "PlaybackError",
    "PlaybackKind",
    "SignalComponent",
    "SignalMode",
    "SignalModel",
    "SquareEnvelope",
    "SynthesisCancelledError",
    "WaveformKind",
    "analyze",
    "apply_filter",
    "bin_frequencies",
    "compose",
    "decompose",
    "evaluate_envelope",
    "evaluate_waveform",
    "export_components",
    "forward",
    "harmonics",
    "import_components",
    "inverse",
    "load_session",
    "parse_components",
    "render",
    "render_model",
    "response",
    "save_session",
    "write_wav",
]

__version__ = "0.1.0"

_configure_logging()
del _configure_logging
