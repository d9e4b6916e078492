"""Re-locate a snapshot reference in the live UI.

The strategies run in a fixed priority order and the first visible match wins.
Attribute strategies survive re-renders that keep semantic identity; the
positional fallback survives re-renders that only keep layout.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable

from .config import AutomationConfig
from .driver import ElementHandleLike, UiDriver
from .errors import DriverError, ElementNotLocatable, ReferenceNotFound
from .models import BoundingBox, ElementDescriptor, Snapshot
from .selector_rules import TEXT_SELECTOR_TAGS, attribute_selector, id_selector, text_contains_xpath

logger = logging.getLogger("elementpilot.resolver")

SelectorBuilder = Callable[[ElementDescriptor, AutomationConfig], "str | None"]


@dataclass(frozen=True, slots=True)
class ResolutionStrategy:
    name: str
    build_selector: SelectorBuilder


@dataclass(frozen=True, slots=True)
class ResolvedElement:
    handle: ElementHandleLike
    strategy: str


def _by_id(descriptor: ElementDescriptor, _config: AutomationConfig) -> str | None:
    return id_selector(descriptor.attr("id"))


def _by_name(descriptor: ElementDescriptor, _config: AutomationConfig) -> str | None:
    return attribute_selector("name", descriptor.attr("name"))


def _by_aria_label(descriptor: ElementDescriptor, _config: AutomationConfig) -> str | None:
    return attribute_selector("aria-label", descriptor.aria_label)


def _by_text(descriptor: ElementDescriptor, config: AutomationConfig) -> str | None:
    tag = descriptor.tag_name.lower()
    if tag not in TEXT_SELECTOR_TAGS:
        return None
    return text_contains_xpath(tag, descriptor.text, config.resolver_text_limit)


def _by_role(descriptor: ElementDescriptor, _config: AutomationConfig) -> str | None:
    return attribute_selector("role", descriptor.role)


RESOLUTION_STRATEGIES: tuple[ResolutionStrategy, ...] = (
    ResolutionStrategy("id", _by_id),
    ResolutionStrategy("name", _by_name),
    ResolutionStrategy("aria-label", _by_aria_label),
    ResolutionStrategy("text", _by_text),
    ResolutionStrategy("role", _by_role),
)

POSITION_STRATEGY = "position"


def resolve_reference(
    driver: UiDriver,
    reference: str,
    snapshot: Snapshot,
    config: AutomationConfig | None = None,
) -> ElementHandleLike:
    descriptor = snapshot.get(reference)
    if descriptor is None:
        raise ReferenceNotFound(reference, snapshot.references)
    return locate_element(driver, descriptor, config).handle


def locate_element(
    driver: UiDriver,
    descriptor: ElementDescriptor,
    config: AutomationConfig | None = None,
) -> ResolvedElement:
    settings = config or AutomationConfig()

    for strategy in RESOLUTION_STRATEGIES:
        selector = strategy.build_selector(descriptor, settings)
        if not selector:
            continue
        try:
            handle = _first_visible(driver, driver.query_all(selector))
        except DriverError as exc:
            logger.debug("Strategy %s failed for %s: %s", strategy.name, descriptor.reference, exc)
            continue
        if handle is not None:
            logger.debug("Resolved %s via %s (%s)", descriptor.reference, strategy.name, selector)
            return ResolvedElement(handle=handle, strategy=strategy.name)

    handle = _find_by_position(driver, descriptor, settings.position_tolerance_px)
    if handle is not None:
        logger.debug("Resolved %s via position", descriptor.reference)
        return ResolvedElement(handle=handle, strategy=POSITION_STRATEGY)

    raise ElementNotLocatable(descriptor.reference, descriptor.tag_name)


def _first_visible(driver: UiDriver, handles: list[ElementHandleLike]) -> ElementHandleLike | None:
    for handle in handles:
        if driver.is_visible(handle):
            return handle
    return None


def is_within_tolerance(recorded: BoundingBox, observed: BoundingBox, tolerance: float) -> bool:
    return abs(observed.x - recorded.x) < tolerance and abs(observed.y - recorded.y) < tolerance


def _find_by_position(driver: UiDriver, descriptor: ElementDescriptor, tolerance: float) -> ElementHandleLike | None:
    recorded = descriptor.bounding_box
    if recorded is None or not descriptor.tag_name:
        return None

    try:
        handles = driver.query_all(descriptor.tag_name)
    except DriverError as exc:
        logger.debug("Positional query failed for %s: %s", descriptor.reference, exc)
        return None

    for handle in handles:
        try:
            if not driver.is_visible(handle):
                continue
            observed = driver.get_bounding_box(handle)
        except DriverError:
            continue
        if observed is not None and is_within_tolerance(recorded, observed, tolerance):
            return handle
    return None
