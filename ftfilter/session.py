"""
Import and export of component lists and saved sessions.

Records use the persisted shape ``freq``, ``amp``, ``phase``, ``waveType``,
``startTime``, ``endTime``, ``envelopeType`` and ``envelopeParams``. Session
files wrap the record list together with the filter and display settings.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, cast

from pydantic import ValidationError

from .config import SignalComponent, SignalModel
from .errors import MalformedImportError

_LOGGER = logging.getLogger("ftfilter.session")


def parse_components(payload: object) -> tuple[SignalComponent, ...]:
    """Validate a list of component records.

    Raises MalformedImportError when ``payload`` is not a list of objects or
    any record fails validation.
    """
    match payload:
        case str() | bytes() | Mapping():
            raise MalformedImportError(
                f"component import must be a list of records, got {type(payload).__name__}"
            )
        case Sequence():
            records = cast(Sequence[object], payload)
        case _:
            raise MalformedImportError(
                f"component import must be a list of records, got {type(payload).__name__}"
            )
    components: list[SignalComponent] = []
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise MalformedImportError(f"record {index} is not an object")
        try:
            components.append(SignalComponent.model_validate(record))
        except ValidationError as exc:
            raise MalformedImportError(f"record {index} is invalid: {exc}") from exc
    return tuple(components)


def import_components(model: SignalModel, payload: object) -> SignalModel:
    """Snapshot of ``model`` with its components replaced by ``payload``.

    ``model`` itself is never touched, so a failed import leaves the caller
    holding the previous valid state.
    """
    components = parse_components(payload)
    _LOGGER.info("Imported %d components", len(components))
    return model.with_components(components)


def export_components(model: SignalModel) -> list[dict[str, Any]]:
    return [component.to_record() for component in model.components]


def loads_components(text: str) -> tuple[SignalComponent, ...]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedImportError(f"component import is not valid JSON: {exc}") from exc
    return parse_components(payload)


def dumps_components(model: SignalModel) -> str:
    return json.dumps(export_components(model), indent=2)


# -----------------------------------------------------------------------------
# Session files
# -----------------------------------------------------------------------------


def session_to_dict(model: SignalModel) -> dict[str, Any]:
    return {
        "components": export_components(model),
        "filterCenter": model.filter_spec.center,
        "filterWidth": model.filter_spec.width,
        "filterType": model.filter_spec.kind,
        "timeBase": model.display.time_base,
        "showAxis": model.display.show_axis,
        "smoothing": model.display.smoothing,
        "mode": model.mode,
    }


def session_from_dict(payload: object, base: SignalModel | None = None) -> SignalModel:
    """Restore a session onto ``base`` (defaults when omitted).

    Missing keys keep the value from ``base``. A bare list is accepted as a
    component-only export.
    """
    model = base if base is not None else SignalModel()
    if not isinstance(payload, Mapping):
        return import_components(model, payload)
    data = cast(Mapping[str, Any], payload)
    try:
        if "components" in data:
            model = import_components(model, data["components"])
        model = model.with_filter(
            center=data.get("filterCenter"),
            width=data.get("filterWidth"),
            kind=data.get("filterType"),
        )
        display_changes = {
            field: data[key]
            for key, field in (
                ("timeBase", "time_base"),
                ("showAxis", "show_axis"),
                ("smoothing", "smoothing"),
            )
            if data.get(key) is not None
        }
        if display_changes:
            model = model.with_display(**display_changes)
        if data.get("mode") is not None:
            model = model.with_mode(data["mode"])
    except ValidationError as exc:
        raise MalformedImportError(f"session settings are invalid: {exc}") from exc
    return model


def loads_session(text: str, base: SignalModel | None = None) -> SignalModel:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedImportError(f"session is not valid JSON: {exc}") from exc
    return session_from_dict(payload, base)


def dumps_session(model: SignalModel) -> str:
    return json.dumps(session_to_dict(model), indent=2)


def load_session(path: str | Path, base: SignalModel | None = None) -> SignalModel:
    target = Path(path)
    model = loads_session(target.read_text(encoding="utf-8"), base)
    _LOGGER.info("Loaded session from %s", target)
    return model


def save_session(path: str | Path, model: SignalModel) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dumps_session(model), encoding="utf-8")
    _LOGGER.info("Saved session to %s", target)
    return target
