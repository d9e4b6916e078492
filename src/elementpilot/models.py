from __future__ import annotations

from dataclasses import dataclass, field
import re
from types import MappingProxyType
from typing import Any, Mapping


def _freeze_mapping(instance: object, name: str) -> None:
    value = getattr(instance, name)
    if not isinstance(value, MappingProxyType):
        object.__setattr__(instance, name, MappingProxyType(dict(value)))


@dataclass(frozen=True, slots=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class ElementDescriptor:
    reference: str
    tag_name: str
    text: str
    aria_label: str | None
    role: str | None
    attributes: Mapping[str, str] = field(default_factory=dict)
    bounding_box: BoundingBox | None = None
    is_clickable: bool = False
    is_visible: bool = True
    is_enabled: bool = True

    def __post_init__(self) -> None:
        _freeze_mapping(self, "attributes")

    def attr(self, key: str) -> str | None:
        value = self.attributes.get(key)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def label(self) -> str:
        return self.aria_label or self.text or self.role or self.tag_name

    def to_recorded_element(self) -> RecordedElement:
        attributes = dict(self.attributes)
        if self.aria_label:
            attributes["aria-label"] = self.aria_label
        if self.role:
            attributes["role"] = self.role
        return RecordedElement(
            reference=self.reference,
            tag_name=self.tag_name,
            text=self.text,
            attributes=attributes,
        )


@dataclass(frozen=True, slots=True)
class Snapshot:
    title: str
    url: str
    elements: Mapping[str, ElementDescriptor]
    timestamp: float

    def __post_init__(self) -> None:
        _freeze_mapping(self, "elements")

    @property
    def references(self) -> list[str]:
        return list(self.elements)

    def get(self, reference: str) -> ElementDescriptor | None:
        return self.elements.get(reference)


@dataclass(frozen=True, slots=True)
class RecordedElement:
    reference: str
    tag_name: str
    text: str | None = None
    attributes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _freeze_mapping(self, "attributes")


@dataclass(frozen=True, slots=True)
class RecordedAction:
    tool: str
    params: Mapping[str, Any]
    timestamp: float
    element_info: RecordedElement | None = None

    def __post_init__(self) -> None:
        _freeze_mapping(self, "params")


@dataclass(frozen=True, slots=True)
class LocatorCandidate:
    reference: str
    score: int
    selectors: tuple[str, ...] = ()

    @property
    def best_selector(self) -> str | None:
        return self.selectors[0] if self.selectors else None


@dataclass(frozen=True, slots=True)
class RecordingStatus:
    enabled: bool
    count: int


@dataclass(frozen=True, slots=True)
class SessionState:
    is_connected: bool
    recording_enabled: bool
    action_count: int
    app_path: str | None = None
    window_title: str | None = None


@dataclass(frozen=True, slots=True)
class VerificationResult:
    ok: bool
    message: str


@dataclass(slots=True)
class ConsoleLogEntry:
    level: str
    message: str
    timestamp: float
    source: str | None = None


@dataclass(slots=True)
class NetworkEntry:
    url: str
    method: str
    status: int | None = None
    response_time_ms: float | None = None
    content_type: str | None = None
    request_id: str = ""


@dataclass(slots=True)
class MockResponse:
    url: str | re.Pattern[str]
    status: int = 200
    body: str | None = None
    content_type: str = "application/json"
    headers: dict[str, str] = field(default_factory=dict)
