from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Callable, cast

import numpy as np
import soundfile as sf  # type: ignore[import]
from numpy.typing import DTypeLike, NDArray
from pydantic import BaseModel, ConfigDict, model_validator

from .errors import PlaybackError

FloatArray = NDArray[np.float32]
AudioNumbers = NDArray[np.floating[Any]] | Sequence[float] | FloatArray

SAMPLE_RATE = 44_100


def ensure_audio_contract(audio: AudioNumbers) -> FloatArray:
    """Mono float32 with peak at most 1.0."""

    mono: FloatArray = np.asarray(audio, dtype=np.float32).reshape(-1)
    if mono.size == 0:
        return mono
    peak = float(np.max(np.abs(mono)))
    if peak > 1.0:
        mono = mono / peak
    return mono


def write_wav(
    path: str | Path,
    audio: AudioNumbers,
    *,
    sample_rate: int = SAMPLE_RATE,
) -> Path:
    """Write a mono buffer to a wav file."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    write_fn = getattr(sf, "write", None)
    assert callable(write_fn)
    write_audio = cast(Callable[[Path | str, AudioNumbers, int], None], write_fn)
    # soundfile stubs are incomplete; cast is intentional for type safety.
    write_audio(target, ensure_audio_contract(audio), sample_rate)
    return target


class Audio(BaseModel):
    samples: FloatArray
    sample_rate: int = SAMPLE_RATE

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    @model_validator(mode="after")
    def _normalize(self) -> "Audio":
        object.__setattr__(self, "samples", ensure_audio_contract(self.samples))
        return self

    @property
    def duration(self) -> float:
        return self.samples.size / self.sample_rate

    def to_numpy(self) -> FloatArray:
        return self.samples

    def __array__(self, dtype: DTypeLike | None = None) -> NDArray[np.generic]:
        return np.asarray(self.samples, dtype=dtype)

    def save(self, path: str | Path) -> Path:
        return write_wav(path, self.samples, sample_rate=self.sample_rate)

    def play(self) -> None:
        from .playback import play_audio

        try:
            play_audio(self.samples, sample_rate=self.sample_rate)
        except PlaybackError:
            raise
        except Exception as exc:
            raise PlaybackError(f"playback failed: {exc}") from exc
