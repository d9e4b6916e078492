"""Narrow interface to the UI-automation collaborator.

Everything that touches the live application goes through a ``UiDriver``.
Handles are opaque to the rest of the package; only the driver that produced
a handle knows how to act on it. Implementations raise ``DriverError`` for
failures of an individual call (stale handle, invalid selector, closed target).
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence

from .models import BoundingBox, NetworkEntry

ElementHandleLike = Any
NetworkCallback = Callable[[NetworkEntry], None]


class UiDriver(Protocol):
    def get_title(self) -> str: ...

    def get_url(self) -> str: ...

    def query_all(self, selector: str) -> list[ElementHandleLike]: ...

    def is_visible(self, handle: ElementHandleLike) -> bool: ...

    def is_enabled(self, handle: ElementHandleLike) -> bool: ...

    def get_tag_name(self, handle: ElementHandleLike) -> str: ...

    def get_attribute(self, handle: ElementHandleLike, name: str) -> str | None: ...

    def get_text(self, handle: ElementHandleLike) -> str: ...

    def get_value(self, handle: ElementHandleLike) -> str: ...

    def get_bounding_box(self, handle: ElementHandleLike) -> BoundingBox | None: ...

    def click(self, handle: ElementHandleLike) -> None: ...

    def set_value(self, handle: ElementHandleLike, text: str) -> None: ...

    def clear_value(self, handle: ElementHandleLike) -> None: ...

    def execute_script(self, script: str, args: Sequence[Any] | None = None) -> Any: ...

    def screenshot(self) -> bytes: ...

    def set_window_size(self, width: int, height: int) -> None: ...

    def subscribe_network(self, callback: NetworkCallback) -> None: ...

    def close(self) -> None: ...
