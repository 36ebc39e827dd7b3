from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .analysis import analyze
from .audio import Audio
from .config import SignalModel
from .filters import response
from .logging_utils import configure_logging, log_exception
from .playback import PlaybackController
from .session import dumps_components, load_session
from .synth import render_model

_LOGGER = logging.getLogger("ftfilter.cli")
_CONSOLE = Console()
_ERR_CONSOLE = Console(stderr=True)


def _load_model(session: str | None) -> SignalModel:
    if session is None:
        return SignalModel()
    return load_session(session)


def render_error(context: str, exc: BaseException) -> None:
    _ERR_CONSOLE.print(f"[bold red]{context} failed:[/] {type(exc).__name__}: {exc}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ftfilter")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze_cmd = sub.add_parser("analyze", help="Print the spectral peaks of a session.")
    analyze_cmd.add_argument("--session", type=str, default=None)
    analyze_cmd.add_argument("--threshold", type=float, default=0.01)

    render_cmd = sub.add_parser("render", help="Render original or reconstructed audio to wav.")
    render_cmd.add_argument("kind", choices=["original", "reconstructed"], type=str)
    render_cmd.add_argument("--session", type=str, default=None)
    render_cmd.add_argument("--output", type=str, default=None)
    render_cmd.add_argument("--duration", type=float, default=None)

    play_cmd = sub.add_parser("play", help="Render and play original or reconstructed audio.")
    play_cmd.add_argument("kind", choices=["original", "reconstructed"], type=str)
    play_cmd.add_argument("--session", type=str, default=None)
    play_cmd.add_argument("--duration", type=float, default=None)

    export_cmd = sub.add_parser("export", help="Write the session's component list as JSON.")
    export_cmd.add_argument("--session", type=str, default=None)
    export_cmd.add_argument("--output", type=str, default=None)
    return parser


def _print_peaks(model: SignalModel, threshold: float) -> None:
    result = analyze(model)
    spec = model.filter_spec
    table = Table(
        title=(
            f"Spectrum (N={model.size}, sr={model.sample_rate:g} Hz, "
            f"{spec.kind} filter {spec.center:g}±{spec.width / 2:g} Hz)"
        )
    )
    table.add_column("Frequency (Hz)", justify="right")
    table.add_column("Magnitude", justify="right")
    table.add_column("Response", justify="right")
    for freq, mag, passed in result.peaks(threshold):
        style = "cyan" if passed else "dim"
        table.add_row(f"{freq:.2f}", f"{mag:.3f}", f"{response(freq, spec):.3f}", style=style)
    _CONSOLE.print(table)


def main(argv: list[str] | None = None) -> int:
    configure_logging(console=True)
    try:
        parser = build_parser()
        args = parser.parse_args(argv)

        if args.command == "analyze":
            _print_peaks(_load_model(args.session), args.threshold)
            return 0

        if args.command == "render":
            model = _load_model(args.session)
            with _CONSOLE.status(f"Rendering {args.kind} audio"):
                samples = render_model(model, args.kind, duration=args.duration)
            output = Path(args.output or f"{args.kind}.wav")
            path = Audio(samples=samples, sample_rate=model.audio.sample_rate).save(output)
            _CONSOLE.print(f"Wrote {args.kind} audio to {path} (sr={model.audio.sample_rate})")
            return 0

        if args.command == "play":
            model = _load_model(args.session)
            with PlaybackController() as controller:
                controller.play(args.kind, model, duration=args.duration)
            return 0

        if args.command == "export":
            text = dumps_components(_load_model(args.session))
            if args.output is None:
                _CONSOLE.print_json(text)
            else:
                Path(args.output).write_text(text, encoding="utf-8")
                _CONSOLE.print(f"Wrote components to {args.output}")
            return 0

        parser.print_help()
        return 1
    except Exception as exc:
        debug = bool(os.environ.get("FTFILTER_DEBUG"))
        _LOGGER.warning("ftfilter CLI failed: %s", exc, exc_info=debug)
        log_exception("ftfilter CLI", exc)
        render_error("ftfilter CLI", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
