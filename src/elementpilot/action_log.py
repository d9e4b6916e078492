from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile
from typing import Any, Iterable, Sequence

from .models import RecordedAction, RecordedElement


def _element_to_dict(element: RecordedElement | None) -> dict[str, Any] | None:
    if element is None:
        return None
    return {
        "reference": element.reference,
        "tag_name": element.tag_name,
        "text": element.text,
        "attributes": dict(element.attributes),
    }


def action_to_dict(action: RecordedAction) -> dict[str, Any]:
    return {
        "tool": action.tool,
        "params": dict(action.params),
        "timestamp": action.timestamp,
        "element_info": _element_to_dict(action.element_info),
    }


def dump_action_log(actions: Iterable[RecordedAction]) -> str:
    payload = {"actions": [action_to_dict(action) for action in actions]}
    return json.dumps(payload, ensure_ascii=True, indent=2, default=str)


def _element_from_dict(raw: Any, index: int) -> RecordedElement | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"Action {index}: element_info must be an object.")
    tag_name = raw.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name:
        raise ValueError(f"Action {index}: element_info.tag_name is required.")
    attributes = raw.get("attributes") or {}
    if not isinstance(attributes, dict):
        raise ValueError(f"Action {index}: element_info.attributes must be an object.")
    text = raw.get("text")
    return RecordedElement(
        reference=str(raw.get("reference") or ""),
        tag_name=tag_name,
        text=None if text is None else str(text),
        attributes={str(key): str(value) for key, value in attributes.items() if value is not None},
    )


def action_from_dict(raw: Any, index: int = 0) -> RecordedAction:
    if not isinstance(raw, dict):
        raise ValueError(f"Action {index}: expected an object.")
    tool = raw.get("tool")
    if not isinstance(tool, str) or not tool.strip():
        raise ValueError(f"Action {index}: tool is required.")
    params = raw.get("params") or {}
    if not isinstance(params, dict):
        raise ValueError(f"Action {index}: params must be an object.")
    timestamp = raw.get("timestamp", 0.0)
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise ValueError(f"Action {index}: timestamp must be a number.")
    return RecordedAction(
        tool=tool.strip(),
        params=params,
        timestamp=float(timestamp),
        element_info=_element_from_dict(raw.get("element_info"), index),
    )


def load_action_log(text: str) -> list[RecordedAction]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Action log is not valid JSON: {exc}") from exc

    # A bare list is accepted as well as the {"actions": [...]} envelope.
    if isinstance(payload, dict):
        payload = payload.get("actions")
    if not isinstance(payload, list):
        raise ValueError("Action log must be a list of actions.")
    return [action_from_dict(item, index) for index, item in enumerate(payload, start=1)]


def format_action_log(actions: Sequence[RecordedAction]) -> str:
    lines: list[str] = []
    for index, action in enumerate(actions, start=1):
        params = ", ".join(
            f"{key}={json.dumps(value, ensure_ascii=False, separators=(',', ':'), default=str)}"
            for key, value in action.params.items()
        )
        lines.append(f"{index}. {action.tool}({params})")
    return "\n".join(lines)


def write_generated_test(path: Path, source: str, overwrite: bool = False) -> tuple[bool, str]:
    target = Path(path)
    if target.exists() and not overwrite:
        return False, f"File already exists: {target}. Pass overwrite to replace it."

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return False, f"Could not create output folder: {exc}"

    temp_path: Path | None = None
    try:
        fd, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
        temp_path = Path(temp_name)
        with os.fdopen(fd, "w", encoding="utf-8") as temp_file:
            temp_file.write(source)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        temp_path.replace(target)
    except OSError as exc:
        if temp_path and temp_path.exists():
            temp_path.unlink(missing_ok=True)
        return False, f"Could not write test file: {exc}"

    return True, f"Wrote {target}"
