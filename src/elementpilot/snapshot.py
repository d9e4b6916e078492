from __future__ import annotations

import logging
import time

from .config import AutomationConfig
from .driver import UiDriver
from .element_extractor import extract_element_descriptor
from .errors import DriverError
from .models import ElementDescriptor, Snapshot

logger = logging.getLogger("elementpilot.snapshot")

INTERACTIVE_SELECTORS: tuple[str, ...] = (
    "button",
    "a",
    "input",
    "select",
    "textarea",
    '[role="button"]',
    '[role="link"]',
    '[role="checkbox"]',
    '[role="radio"]',
    '[role="menuitem"]',
    '[role="tab"]',
    "[onclick]",
    '[tabindex]:not([tabindex="-1"])',
)

INTERACTIVE_SELECTOR = ", ".join(INTERACTIVE_SELECTORS)
NO_SNAPSHOT_TEXT = "No snapshot available"


def reference_for(index: int) -> str:
    return f"e{index}"


def capture_snapshot(driver: UiDriver, config: AutomationConfig | None = None) -> Snapshot:
    settings = config or AutomationConfig()

    title = driver.get_title()
    url = driver.get_url()
    candidates = driver.query_all(INTERACTIVE_SELECTOR)[: settings.snapshot_element_limit]

    elements: dict[str, ElementDescriptor] = {}
    skipped = 0
    for handle in candidates:
        reference = reference_for(len(elements) + 1)
        try:
            if not driver.is_visible(handle):
                continue
            elements[reference] = extract_element_descriptor(driver, handle, reference, settings)
        except DriverError as exc:
            skipped += 1
            logger.debug("Skipping element during snapshot: %s", exc)

    logger.info(
        "Snapshot captured: %s element(s) from %s candidate(s), %s skipped",
        len(elements),
        len(candidates),
        skipped,
    )
    return Snapshot(title=title, url=url, elements=elements, timestamp=time.time())


def format_snapshot_as_text(snapshot: Snapshot | None, config: AutomationConfig | None = None) -> str:
    if snapshot is None:
        return NO_SNAPSHOT_TEXT

    limit = (config or AutomationConfig()).label_text_limit
    lines = [
        f"Window: {snapshot.title}",
        f"URL: {snapshot.url}",
        "",
        "Interactive Elements:",
    ]
    for reference, info in snapshot.elements.items():
        disabled = "" if info.is_enabled else " [disabled]"
        lines.append(f"  [{reference}] {info.tag_name}: {info.label()[:limit]}{disabled}")
    return "\n".join(lines)
