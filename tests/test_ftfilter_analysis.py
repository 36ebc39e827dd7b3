import numpy as np
import pytest

from ftfilter.analysis import analyze, smooth
from ftfilter.config import SignalComponent, SignalModel


def test_magnitudes_are_normalized_amplitudes() -> None:
    result = analyze(SignalModel())

    assert result.frequencies.size == 512
    assert result.frequencies[8] == 2.0
    assert result.frequencies[20] == 5.0
    assert result.magnitudes[8] == pytest.approx(1.0)
    assert result.magnitudes[20] == pytest.approx(0.5)
    assert result.magnitudes[60] == pytest.approx(0.3)


def test_display_scale_overrides_normalization() -> None:
    model = SignalModel().with_display(magnitude_scale=1.0)
    result = analyze(model)
    assert result.magnitudes[8] == pytest.approx(512.0)


def test_passband_mask_marks_filtered_bins() -> None:
    result = analyze(SignalModel())
    passed = result.frequencies[result.passband]
    assert passed.min() == 3.0
    assert passed.max() == 7.0


def test_peaks_report_components() -> None:
    peaks = analyze(SignalModel()).peaks()
    assert [(freq, passed) for freq, _, passed in peaks] == [
        (2.0, False),
        (5.0, True),
        (15.0, False),
    ]


def test_reconstruction_keeps_only_passband_component() -> None:
    result = analyze(SignalModel())
    expected = 0.5 * np.cos(2 * np.pi * 5.0 * result.times)
    np.testing.assert_allclose(result.reconstructed, expected, atol=1e-9)


def test_visible_window() -> None:
    result = analyze(SignalModel())
    times, original, reconstructed = result.visible(2.0)
    assert times.size == 513
    assert times[-1] == 2.0
    assert original.size == reconstructed.size == 513


def test_gated_mode_is_silent_outside_window() -> None:
    component = SignalComponent(frequency=5.0, amplitude=1.0, start_time=1.0, end_time=2.0)
    model = SignalModel(components=(component,), mode="gated")
    result = analyze(model)
    assert np.all(result.original[result.times < 1.0] == 0.0)


def test_smoothing() -> None:
    values = np.array([1.0, 0.0, 0.0])
    np.testing.assert_allclose(smooth(values, 0.5), [1.0, 0.5, 0.25])
    assert smooth(values, 0.0) is values


def test_smoothing_only_touches_time_series() -> None:
    plain = analyze(SignalModel())
    smoothed = analyze(SignalModel().with_display(smoothing=0.6))
    np.testing.assert_allclose(smoothed.magnitudes, plain.magnitudes)
    assert not np.allclose(smoothed.original, plain.original)
    assert smoothed.original[0] == pytest.approx(plain.original[0])
