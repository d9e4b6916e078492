"""Exception types surfaced by session operations."""

from __future__ import annotations

from typing import Iterable


class ElementPilotError(RuntimeError):
    """Base class for all elementpilot failures."""


class DriverError(ElementPilotError):
    """Raised when the UI-automation collaborator fails an individual call."""


class LaunchError(ElementPilotError):
    """Raised when the application binary cannot be started or attached to."""


class NotConnected(ElementPilotError):
    def __init__(self, message: str = "No application is currently running. Launch or connect one first.") -> None:
        super().__init__(message)


class ReferenceNotFound(ElementPilotError):
    def __init__(self, reference: str, available: Iterable[str]) -> None:
        self.reference = reference
        self.available = tuple(available)
        listing = ", ".join(self.available) if self.available else "(none)"
        super().__init__(f"Element ref not found: {reference}. Available refs: {listing}")


class ElementNotLocatable(ElementPilotError):
    def __init__(self, reference: str, tag_name: str) -> None:
        self.reference = reference
        self.tag_name = tag_name
        super().__init__(f"Could not find element: {reference} ({tag_name})")


class UnsupportedFormat(ElementPilotError):
    def __init__(self, target_format: str, supported: Iterable[str]) -> None:
        self.target_format = target_format
        self.supported = tuple(supported)
        super().__init__(f"Unsupported format: {target_format}. Supported formats: {', '.join(self.supported)}")
