import math

import numpy as np
import pytest

from ftfilter.config import AdsrEnvelope, GaussianEnvelope, SquareEnvelope
from ftfilter.waveforms import evaluate_envelope, evaluate_waveform


class TestWaveforms:
    def test_sine_uses_cosine_phase(self) -> None:
        assert evaluate_waveform(0.0, 5.0, 0.0, "sine") == 1.0
        assert evaluate_waveform(0.1, 5.0, 0.0, "sine") == pytest.approx(-1.0)

    def test_square_only_takes_unit_values(self) -> None:
        t = np.linspace(0.0, 2.0, 1001)
        values = evaluate_waveform(t, 3.0, 0.4, "square")
        assert set(np.unique(values).tolist()) <= {-1.0, 1.0}

    def test_square_follows_cosine_sign(self) -> None:
        assert evaluate_waveform(0.0, 1.0, 0.0, "square") == 1.0
        assert evaluate_waveform(0.0, 1.0, math.pi, "square") == -1.0

    def test_triangle_peaks(self) -> None:
        assert evaluate_waveform(0.0, 2.0, 0.0, "triangle") == pytest.approx(1.0)
        assert evaluate_waveform(0.0, 2.0, math.pi, "triangle") == pytest.approx(-1.0)
        assert evaluate_waveform(0.0, 2.0, math.pi / 2, "triangle") == pytest.approx(0.0, abs=1e-12)

    def test_sawtooth_ramp(self) -> None:
        assert evaluate_waveform(0.0, 1.0, 0.0, "sawtooth") == 0.0
        assert evaluate_waveform(0.25, 1.0, 0.0, "sawtooth") == pytest.approx(0.5)
        assert evaluate_waveform(0.75, 1.0, 0.0, "sawtooth") == pytest.approx(-0.5)
        values = evaluate_waveform(np.linspace(0.0, 3.0, 997), 1.7, 0.3, "sawtooth")
        assert float(values.min()) >= -1.0
        assert float(values.max()) < 1.0

    @pytest.mark.parametrize("kind", ["sine", "square", "triangle", "sawtooth"])
    def test_values_stay_in_unit_range(self, kind: str) -> None:
        t = np.linspace(0.0, 1.0, 513)
        values = evaluate_waveform(t, 7.3, 1.1, kind)  # type: ignore[arg-type]
        assert values.shape == t.shape
        assert float(np.max(np.abs(values))) <= 1.0

    def test_unknown_kind_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            evaluate_waveform(0.0, 1.0, 0.0, "noise")  # type: ignore[arg-type]


class TestEnvelopes:
    def test_adsr_boundaries(self) -> None:
        env = AdsrEnvelope(attack=0.1, decay=0.1, sustain=0.5, release=0.2)
        assert evaluate_envelope(0.0, env) == 0.0
        assert evaluate_envelope(0.1, env) == 1.0
        assert evaluate_envelope(0.5, env) == 0.5
        assert evaluate_envelope(1.0, env) == 0.0

    def test_adsr_ramps(self) -> None:
        env = AdsrEnvelope(attack=0.1, decay=0.1, sustain=0.5, release=0.2)
        assert evaluate_envelope(0.05, env) == pytest.approx(0.5)
        assert evaluate_envelope(0.15, env) == pytest.approx(0.75)
        assert evaluate_envelope(0.9, env) == pytest.approx(0.25)

    def test_adsr_zero_length_segments_do_not_divide_by_zero(self) -> None:
        env = AdsrEnvelope(attack=0.0, decay=0.0, sustain=0.6, release=0.0)
        with np.errstate(all="raise"):
            gains = evaluate_envelope(np.array([0.0, 0.5, 0.999, 1.0]), env)
        assert gains.tolist() == [0.6, 0.6, 0.6, 0.0]

    def test_adsr_gain_stays_in_unit_range(self) -> None:
        env = AdsrEnvelope(attack=0.3, decay=0.3, sustain=0.8, release=0.6)
        gains = evaluate_envelope(np.linspace(0.0, 1.0, 257), env)
        assert float(gains.min()) >= 0.0
        assert float(gains.max()) <= 1.0

    def test_gaussian_envelope(self) -> None:
        env = GaussianEnvelope(center=0.4, width=0.1)
        assert evaluate_envelope(0.4, env) == 1.0
        assert evaluate_envelope(0.5, env) == pytest.approx(math.exp(-0.5))

    def test_square_envelope_is_flat(self) -> None:
        gains = evaluate_envelope(np.linspace(0.0, 1.0, 5), SquareEnvelope())
        assert gains.tolist() == [1.0] * 5
