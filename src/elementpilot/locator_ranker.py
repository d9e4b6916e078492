from __future__ import annotations

from typing import Sequence

from .config import AutomationConfig
from .models import ElementDescriptor, LocatorCandidate, Snapshot
from .scoring import score_element
from .selector_rules import (
    attribute_selector,
    id_selector,
    tag_class_selector,
    text_contains_xpath,
)


def candidate_selectors(descriptor: ElementDescriptor, config: AutomationConfig | None = None) -> tuple[str, ...]:
    settings = config or AutomationConfig()
    tag = descriptor.tag_name or "*"
    ordered = (
        attribute_selector("data-testid", descriptor.attr("data-testid")),
        attribute_selector("aria-label", descriptor.aria_label),
        id_selector(descriptor.attr("id")),
        attribute_selector("name", descriptor.attr("name")),
        attribute_selector("role", descriptor.role),
        text_contains_xpath(tag, descriptor.text, settings.resolver_text_limit),
        tag_class_selector(tag, descriptor.attr("class")),
    )

    selectors: list[str] = []
    for selector in ordered:
        if selector and selector not in selectors:
            selectors.append(selector)
    return tuple(selectors)


def rank_locators(
    description: str,
    snapshot: Snapshot,
    config: AutomationConfig | None = None,
) -> list[LocatorCandidate]:
    ranked: list[LocatorCandidate] = []
    for reference, descriptor in snapshot.elements.items():
        match = score_element(descriptor, description)
        if match.total <= 0:
            continue
        ranked.append(
            LocatorCandidate(
                reference=reference,
                score=match.total,
                selectors=candidate_selectors(descriptor, config),
            )
        )

    # Stable sort keeps snapshot order among equal scores.
    ranked.sort(key=lambda item: -item.score)
    return ranked


def format_locator_suggestions(
    description: str,
    candidates: Sequence[LocatorCandidate],
    snapshot: Snapshot,
    *,
    max_elements: int = 5,
    max_selectors: int = 3,
) -> str:
    if not candidates:
        return f'No elements found matching "{description}". Capture a snapshot to see available elements.'

    lines = [
        f'Locator Suggestions for "{description}"',
        "========================================",
        "",
    ]
    for candidate in candidates[:max_elements]:
        info = snapshot.get(candidate.reference)
        tag = info.tag_name if info else "?"
        text = (info.text[:50] if info and info.text else "") or "N/A"
        lines.append(f"Element: {candidate.reference} ({tag})")
        lines.append(f"  Text: {text}")
        lines.append(f"  Match Score: {candidate.score}")
        lines.append("  Recommended Locators (in order of preference):")
        for index, selector in enumerate(candidate.selectors[:max_selectors], start=1):
            lines.append(f"    {index}. {selector}")
        lines.append("")

    best = candidates[0].best_selector or "N/A"
    lines.append(f"Best Locator: {best}")
    return "\n".join(lines)
