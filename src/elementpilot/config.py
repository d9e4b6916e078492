from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import json
from pathlib import Path
import tempfile
from typing import Any

CONFIG_DIR = Path.home() / ".elementpilot"
CONFIG_PATH = CONFIG_DIR / "config.json"

DEFAULT_DESCRIPTOR_ATTRIBUTES: tuple[str, ...] = (
    "id",
    "name",
    "type",
    "href",
    "placeholder",
    "class",
    "data-testid",
)


@dataclass(slots=True)
class AutomationConfig:
    snapshot_element_limit: int = 100
    descriptor_text_limit: int = 100
    resolver_text_limit: int = 30
    label_text_limit: int = 50
    position_tolerance_px: float = 10.0
    descriptor_attributes: tuple[str, ...] = DEFAULT_DESCRIPTOR_ATTRIBUTES
    default_test_name: str = "test_electron_app"
    default_app_path: str = "/path/to/your/electron-app"
    default_screenshot_name: str = "screenshot.png"


_INT_FIELDS = {"snapshot_element_limit", "descriptor_text_limit", "resolver_text_limit", "label_text_limit"}


def load_config(config_path: Path | None = None) -> AutomationConfig:
    path = config_path or CONFIG_PATH
    if not path.exists() or not path.is_file():
        return AutomationConfig()

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, TypeError):
        return AutomationConfig()

    if not isinstance(payload, dict):
        return AutomationConfig()

    return config_from_mapping(payload)


def config_from_mapping(payload: dict[str, Any]) -> AutomationConfig:
    defaults = AutomationConfig()
    values: dict[str, Any] = {}
    for item in fields(AutomationConfig):
        if item.name not in payload:
            continue
        raw = payload[item.name]
        default = getattr(defaults, item.name)
        coerced = _coerce(item.name, raw, default)
        if coerced is not None:
            values[item.name] = coerced
    return AutomationConfig(**values)


def _coerce(name: str, raw: Any, default: Any) -> Any:
    if name in _INT_FIELDS:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw <= 0:
            return None
        return int(raw)
    if name == "position_tolerance_px":
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw < 0:
            return None
        return float(raw)
    if name == "descriptor_attributes":
        if not isinstance(raw, (list, tuple)):
            return None
        names = tuple(str(item).strip().lower() for item in raw if str(item).strip())
        return names or None
    if isinstance(default, str):
        text = str(raw or "").strip()
        return text or None
    return None


def save_config(config: AutomationConfig, config_path: Path | None = None) -> tuple[bool, str | None]:
    path = config_path or CONFIG_PATH

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return False, f"Could not create config folder: {exc}"

    data = asdict(config)
    data["descriptor_attributes"] = list(config.descriptor_attributes)
    payload = json.dumps(data, ensure_ascii=True, indent=2, sort_keys=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            handle.write(payload)
            handle.flush()
            temp_path = Path(handle.name)

        if temp_path is None:
            return False, "Could not create temporary config file."
        temp_path.replace(path)
    except OSError as exc:
        if temp_path and temp_path.exists():
            temp_path.unlink(missing_ok=True)
        return False, f"Could not write config: {exc}"

    return True, None
