import threading

import numpy as np
import pytest

import ftfilter.playback as playback
from ftfilter.config import SignalModel
from ftfilter.errors import PlaybackError, SynthesisCancelledError
from ftfilter.playback import PlaybackBackend, PlaybackController, resolve_backend


class _FakeBackend:
    def __init__(self) -> None:
        self.played: list[tuple[int, int]] = []
        self.stops = 0

    def build(self) -> PlaybackBackend:
        return PlaybackBackend(name="fake", play_audio=self._play, stop=self._stop)

    def _play(self, samples: np.ndarray, sample_rate: int) -> None:
        self.played.append((samples.size, sample_rate))

    def _stop(self) -> None:
        self.stops += 1


def _blocking_render(started: threading.Event, release: threading.Event):
    def _render(model, kind, *, duration=None, cancel=None):  # type: ignore[no-untyped-def]
        started.set()
        release.wait(timeout=5)
        if cancel is not None and cancel.is_set():
            raise SynthesisCancelledError("superseded")
        return np.zeros(10)

    return _render


def test_resolve_backend_without_libraries(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(playback, "_load_sounddevice", lambda: None)
    monkeypatch.setattr(playback, "_load_simpleaudio", lambda: None)
    with pytest.raises(PlaybackError):
        resolve_backend()


def test_play_renders_then_plays() -> None:
    fake = _FakeBackend()
    model = SignalModel().with_audio(sample_rate=8_000)
    with PlaybackController(backend_loader=fake.build) as controller:
        audio = controller.play("reconstructed", model, duration=0.25)

    assert audio is not None
    assert audio.sample_rate == 8_000
    assert fake.played == [(2_000, 8_000)]
    assert fake.stops == 1


def test_new_request_supersedes_running_render(monkeypatch: pytest.MonkeyPatch) -> None:
    started = threading.Event()
    release = threading.Event()
    monkeypatch.setattr(playback, "render_model", _blocking_render(started, release))

    with PlaybackController(backend_loader=_FakeBackend().build) as controller:
        first = controller.request("original", SignalModel())
        assert started.wait(timeout=5)
        second = controller.request("original", SignalModel())
        release.set()

        with pytest.raises(SynthesisCancelledError):
            first.result(timeout=5)
        assert second.result(timeout=5).samples.size == 10


def test_queued_request_is_cancelled_before_running(monkeypatch: pytest.MonkeyPatch) -> None:
    started = threading.Event()
    release = threading.Event()
    monkeypatch.setattr(playback, "render_model", _blocking_render(started, release))

    with PlaybackController(backend_loader=_FakeBackend().build) as controller:
        blocker = controller.request("reconstructed", SignalModel())
        assert started.wait(timeout=5)
        queued = controller.request("original", SignalModel())
        latest = controller.request("original", SignalModel())
        release.set()

        assert queued.cancelled()
        assert blocker.result(timeout=5).samples.size == 10
        assert latest.result(timeout=5).samples.size == 10


def test_other_kind_is_not_superseded(monkeypatch: pytest.MonkeyPatch) -> None:
    started = threading.Event()
    release = threading.Event()
    monkeypatch.setattr(playback, "render_model", _blocking_render(started, release))

    with PlaybackController(backend_loader=_FakeBackend().build) as controller:
        original = controller.request("original", SignalModel())
        assert started.wait(timeout=5)
        reconstructed = controller.request("reconstructed", SignalModel())
        release.set()

        assert original.result(timeout=5).samples.size == 10
        assert reconstructed.result(timeout=5).samples.size == 10


def test_superseding_queued_render_returns_promptly(monkeypatch: pytest.MonkeyPatch) -> None:
    started = threading.Event()
    release = threading.Event()
    monkeypatch.setattr(playback, "render_model", _blocking_render(started, release))

    with PlaybackController(backend_loader=_FakeBackend().build) as controller:
        controller.request("reconstructed", SignalModel())
        assert started.wait(timeout=5)
        queued = controller.request("original", SignalModel())

        results: list[object] = []
        worker = threading.Thread(
            target=lambda: results.append(controller.request("original", SignalModel())),
            daemon=True,
        )
        worker.start()
        worker.join(timeout=3)
        release.set()

        assert not worker.is_alive()
        assert queued.cancelled()
        assert controller._pending["original"].future is results[0]
