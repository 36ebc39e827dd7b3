import numpy as np
import pytest

from ftfilter.config import SignalComponent
from ftfilter.errors import InvalidTransformLengthError
from ftfilter.synth import compose
from ftfilter.transform import forward, inverse, is_power_of_two, magnitude


@pytest.mark.parametrize("size", [1, 2, 8, 64, 1024])
def test_inverse_undoes_forward(size: int) -> None:
    rng = np.random.default_rng(size)
    x = rng.normal(size=size) + 1j * rng.normal(size=size)

    restored = inverse(forward(x))

    np.testing.assert_allclose(restored, x, rtol=1e-9, atol=1e-12)


def test_forward_matches_numpy_reference() -> None:
    rng = np.random.default_rng(7)
    x = rng.normal(size=256) + 1j * rng.normal(size=256)
    np.testing.assert_allclose(forward(x), np.fft.fft(x), rtol=1e-9, atol=1e-9)


def test_forward_does_not_mutate_input() -> None:
    x = np.arange(8, dtype=np.complex128)
    before = x.copy()
    forward(x)
    assert np.array_equal(x, before)


def test_known_spectrum_of_single_cosine() -> None:
    component = SignalComponent(frequency=5.0, amplitude=1.0, phase=0.0, waveform="sine")
    samples = compose([component], sample_rate=256.0, size=1024)

    mags = magnitude(forward(samples))

    assert mags[20] == pytest.approx(512.0, abs=1e-6)
    assert mags[1004] == pytest.approx(512.0, abs=1e-6)
    others = np.delete(mags, [20, 1004])
    assert float(np.max(others)) < 1e-6


def test_real_input_round_trips_to_real_output() -> None:
    rng = np.random.default_rng(3)
    x = rng.normal(size=128)
    restored = inverse(forward(x))
    assert float(np.max(np.abs(restored.imag))) < 1e-12
    np.testing.assert_allclose(restored.real, x, atol=1e-12)


@pytest.mark.parametrize("size", [0, 3, 6, 1000])
def test_rejects_non_power_of_two_lengths(size: int) -> None:
    with pytest.raises(InvalidTransformLengthError):
        forward(np.zeros(size))
    with pytest.raises(InvalidTransformLengthError):
        inverse(np.zeros(size))


def test_is_power_of_two() -> None:
    assert [n for n in range(10) if is_power_of_two(n)] == [1, 2, 4, 8]
