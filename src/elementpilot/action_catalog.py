from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ActionCategory = Literal["App", "Element", "Page", "Window", "Script", "Verify"]

LAUNCH = "launch"
CLICK = "click"
TYPE = "type"
SCREENSHOT = "screenshot"
CLOSE = "close"
EVALUATE = "evaluate"
RESIZE_WINDOW = "resize_window"
VERIFY_ELEMENT_VISIBLE = "verify_element_visible"
VERIFY_TEXT_VISIBLE = "verify_text_visible"
VERIFY_VALUE = "verify_value"


@dataclass(frozen=True, slots=True)
class ActionSpec:
    key: str
    label: str
    category: ActionCategory
    description: str
    parameter_keys: tuple[str, ...] = ()
    uses_element: bool = False
    synthesized: bool = False


ACTION_CATALOG: tuple[ActionSpec, ...] = (
    ActionSpec(
        key=LAUNCH,
        label="Launch app",
        category="App",
        description="Starts the application binary and attaches a session.",
        parameter_keys=("binary_path", "args"),
        synthesized=True,
    ),
    ActionSpec(
        key=CLICK,
        label="Click",
        category="Element",
        description="Clicks an element by snapshot reference.",
        parameter_keys=("ref",),
        uses_element=True,
        synthesized=True,
    ),
    ActionSpec(
        key=TYPE,
        label="Type text",
        category="Element",
        description="Types text into a field, optionally clearing it first.",
        parameter_keys=("ref", "text", "clear"),
        uses_element=True,
        synthesized=True,
    ),
    ActionSpec(
        key=SCREENSHOT,
        label="Screenshot",
        category="Page",
        description="Captures the current window as PNG.",
        parameter_keys=("filename",),
        synthesized=True,
    ),
    ActionSpec(
        key=CLOSE,
        label="Close app",
        category="App",
        description="Closes the application and ends the session.",
        synthesized=True,
    ),
    ActionSpec(
        key=EVALUATE,
        label="Evaluate script",
        category="Script",
        description="Runs JavaScript in the application window.",
        parameter_keys=("script",),
    ),
    ActionSpec(
        key=RESIZE_WINDOW,
        label="Resize window",
        category="Window",
        description="Resizes the application viewport.",
        parameter_keys=("width", "height"),
    ),
    ActionSpec(
        key=VERIFY_ELEMENT_VISIBLE,
        label="Verify element visible",
        category="Verify",
        description="Checks that a referenced element is visible.",
        parameter_keys=("ref",),
        uses_element=True,
    ),
    ActionSpec(
        key=VERIFY_TEXT_VISIBLE,
        label="Verify text visible",
        category="Verify",
        description="Checks that text is visible somewhere in the window.",
        parameter_keys=("text", "exact"),
    ),
    ActionSpec(
        key=VERIFY_VALUE,
        label="Verify value",
        category="Verify",
        description="Checks the current value of an input element.",
        parameter_keys=("ref", "expected_value"),
        uses_element=True,
    ),
)

_ACTION_BY_KEY: dict[str, ActionSpec] = {spec.key: spec for spec in ACTION_CATALOG}


def get_action_spec(action_key: str) -> ActionSpec | None:
    return _ACTION_BY_KEY.get(action_key)


def is_synthesized_action(action_key: str) -> bool:
    spec = _ACTION_BY_KEY.get(action_key)
    return bool(spec and spec.synthesized)


def filter_action_specs(search_text: str = "", category: str = "All") -> list[ActionSpec]:
    query = search_text.strip().lower()
    filtered: list[ActionSpec] = []
    for spec in ACTION_CATALOG:
        if category != "All" and spec.category != category:
            continue
        haystack = f"{spec.key} {spec.label} {spec.description} {spec.category}".lower()
        if query and query not in haystack:
            continue
        filtered.append(spec)
    return filtered
