from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict

from .audio import Audio, FloatArray, ensure_audio_contract
from .config import PlaybackKind, SignalModel
from .errors import PlaybackError, SynthesisCancelledError
from .synth import render_model

_LOGGER = logging.getLogger("ftfilter.playback")


class PlaybackBackend(BaseModel):
    name: str
    play_audio: Callable[[FloatArray, int], None]
    stop: Callable[[], None]

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )


def _load_backend() -> PlaybackBackend | None:
    return _load_sounddevice() or _load_simpleaudio()


def resolve_backend() -> PlaybackBackend:
    backend = _load_backend()
    if backend is None:
        raise PlaybackError(
            "Playback requires sounddevice or simpleaudio. "
            "Install one of them (or use `ftfilter render` to write a wav)."
        )
    return backend


def play_audio(samples: FloatArray, *, sample_rate: int) -> None:
    backend = resolve_backend()
    _LOGGER.info("Playing %.2fs via %s", samples.size / sample_rate, backend.name)
    backend.play_audio(samples, sample_rate)


def _load_sounddevice() -> PlaybackBackend | None:
    try:
        import sounddevice as sd_module  # type: ignore[import]
    except (ImportError, OSError) as exc:
        _LOGGER.info("sounddevice not available: %s", exc, exc_info=True)
        return None
    sd: Any = sd_module

    def _play_audio(samples: FloatArray, sample_rate: int) -> None:
        sd.play(ensure_audio_contract(samples), sample_rate)
        sd.wait()

    def _stop() -> None:
        sd.stop()

    return PlaybackBackend(name="sounddevice", play_audio=_play_audio, stop=_stop)


def _load_simpleaudio() -> PlaybackBackend | None:
    try:
        import simpleaudio as sa_module  # type: ignore[import]
    except ImportError as exc:
        _LOGGER.info("simpleaudio not available: %s", exc, exc_info=True)
        return None
    sa: Any = sa_module

    def _to_int16(samples: FloatArray) -> NDArray[np.int16]:
        clipped = np.clip(ensure_audio_contract(samples), -1.0, 1.0)
        return (clipped * 32_767).astype(np.int16)

    def _play_audio(samples: FloatArray, sample_rate: int) -> None:
        play = sa.play_buffer(_to_int16(samples), 1, 2, sample_rate)
        play.wait_done()

    def _stop() -> None:
        sa.stop_all()

    return PlaybackBackend(name="simpleaudio", play_audio=_play_audio, stop=_stop)


# -----------------------------------------------------------------------------
# Background rendering with supersede semantics
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class _Pending:
    future: Future[Audio]
    cancel: threading.Event


class PlaybackController:
    """Renders playback buffers on a worker thread.

    At most one render per kind is live: a new request of the same kind
    cancels the previous one. A render that is already running notices the
    cancellation between synthesis chunks and fails with
    SynthesisCancelledError.
    """

    def __init__(
        self,
        *,
        backend_loader: Callable[[], PlaybackBackend] = resolve_backend,
        max_workers: int = 1,
    ) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ftfilter")
        self._backend_loader = backend_loader
        self._backend: PlaybackBackend | None = None
        self._pending: dict[PlaybackKind, _Pending] = {}
        self._lock = threading.Lock()

    def request(
        self, kind: PlaybackKind, model: SignalModel, *, duration: float | None = None
    ) -> Future[Audio]:
        """Start rendering ``kind`` for ``model``, superseding any in-flight render of that kind."""
        cancel = threading.Event()

        def _run() -> Audio:
            samples = render_model(model, kind, duration=duration, cancel=cancel)
            return Audio(samples=samples, sample_rate=model.audio.sample_rate)

        with self._lock:
            previous = self._pending.pop(kind, None)
            future = self._executor.submit(_run)
            self._pending[kind] = _Pending(future=future, cancel=cancel)
        # Cancelling a queued future runs _forget inline, which takes the lock.
        if previous is not None:
            _LOGGER.info("Superseding in-flight %s render", kind)
            previous.cancel.set()
            previous.future.cancel()
        future.add_done_callback(lambda done: self._forget(kind, done))
        return future

    def play(
        self, kind: PlaybackKind, model: SignalModel, *, duration: float | None = None
    ) -> Audio | None:
        """Render and play; returns None when a newer request superseded this one."""
        future = self.request(kind, model, duration=duration)
        try:
            audio = future.result()
        except (SynthesisCancelledError, CancelledError):
            _LOGGER.info("%s playback superseded", kind)
            return None
        self._get_backend().play_audio(audio.samples, audio.sample_rate)
        return audio

    def stop(self) -> None:
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
        for item in pending:
            item.cancel.set()
            item.future.cancel()
        if self._backend is not None:
            self._backend.stop()

    def close(self) -> None:
        self.stop()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "PlaybackController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get_backend(self) -> PlaybackBackend:
        if self._backend is None:
            self._backend = self._backend_loader()
        return self._backend

    def _forget(self, kind: PlaybackKind, done: Future[Audio]) -> None:
        with self._lock:
            current = self._pending.get(kind)
            if current is not None and current.future is done:
                del self._pending[kind]
