import json
from pathlib import Path

import pytest

from ftfilter.cli import main
from ftfilter.config import SignalModel
from ftfilter.logging_utils import LOG_DIR_ENV
from ftfilter.session import save_session


@pytest.fixture(autouse=True)
def _log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path / "logs"))


def test_analyze_prints_peaks(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["analyze"]) == 0
    out = capsys.readouterr().out
    assert "2.00" in out
    assert "5.00" in out
    assert "15.00" in out


def test_render_writes_wav(tmp_path: Path) -> None:
    session = save_session(tmp_path / "session.json", SignalModel.reset())
    output = tmp_path / "recon.wav"

    code = main(
        [
            "render",
            "reconstructed",
            "--session",
            str(session),
            "--output",
            str(output),
            "--duration",
            "0.1",
        ]
    )

    assert code == 0
    assert output.exists()


def test_export_writes_components(tmp_path: Path) -> None:
    output = tmp_path / "components.json"
    assert main(["export", "--output", str(output)]) == 0
    records = json.loads(output.read_text(encoding="utf-8"))
    assert [record["freq"] for record in records] == [2.0, 5.0, 15.0]


def test_failures_return_error_code(tmp_path: Path) -> None:
    assert main(["analyze", "--session", str(tmp_path / "missing.json")]) == 1
    assert (tmp_path / "logs" / "ftfilter.log").exists()
