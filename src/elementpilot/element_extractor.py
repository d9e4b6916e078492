from __future__ import annotations

import logging

from .config import AutomationConfig
from .driver import ElementHandleLike, UiDriver
from .errors import DriverError
from .models import BoundingBox, ElementDescriptor
from .selector_rules import is_clickable_element

logger = logging.getLogger("elementpilot.extractor")


def extract_element_descriptor(
    driver: UiDriver,
    handle: ElementHandleLike,
    reference: str,
    config: AutomationConfig | None = None,
) -> ElementDescriptor:
    """Read a live element into an immutable descriptor.

    Missing optional attributes are simply omitted. A missing bounding box is
    recorded as ``None``. Any other ``DriverError`` propagates so the caller can
    drop this one element.
    """
    settings = config or AutomationConfig()

    tag_name = (driver.get_tag_name(handle) or "").strip().lower()
    text = (driver.get_text(handle) or "").strip()
    aria_label = _optional(driver.get_attribute(handle, "aria-label"))
    role = _optional(driver.get_attribute(handle, "role"))

    attributes: dict[str, str] = {}
    for name in settings.descriptor_attributes:
        value = driver.get_attribute(handle, name)
        if value:
            attributes[name] = str(value)

    is_enabled = bool(driver.is_enabled(handle))

    return ElementDescriptor(
        reference=reference,
        tag_name=tag_name,
        text=text[: settings.descriptor_text_limit],
        aria_label=aria_label,
        role=role,
        attributes=attributes,
        bounding_box=_read_bounding_box(driver, handle, reference),
        is_clickable=is_clickable_element(tag_name, role),
        is_visible=True,
        is_enabled=is_enabled,
    )


def _read_bounding_box(driver: UiDriver, handle: ElementHandleLike, reference: str) -> BoundingBox | None:
    try:
        return driver.get_bounding_box(handle)
    except DriverError as exc:
        logger.debug("Bounding box unavailable for %s: %s", reference, exc)
        return None


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
