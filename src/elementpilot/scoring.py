from __future__ import annotations

from dataclasses import dataclass

from .models import ElementDescriptor

FULL_TEXT_MATCH_SCORE = 10

TOKEN_MATCH_SCORES: dict[str, int] = {
    "text": 2,
    "id": 2,
    "name": 2,
    "aria-label": 3,
    "role": 3,
}


@dataclass(frozen=True, slots=True)
class MatchScore:
    total: int
    matched_fields: tuple[str, ...]


def tokenize_description(description: str) -> list[str]:
    return description.lower().split()


def _field_values(descriptor: ElementDescriptor) -> dict[str, str]:
    return {
        "text": (descriptor.text or "").lower(),
        "id": (descriptor.attr("id") or "").lower(),
        "name": (descriptor.attr("name") or "").lower(),
        "aria-label": (descriptor.aria_label or "").lower(),
        "role": (descriptor.role or "").lower(),
    }


def score_element(descriptor: ElementDescriptor, description: str) -> MatchScore:
    phrase = " ".join(tokenize_description(description))
    if not phrase:
        return MatchScore(0, ())

    values = _field_values(descriptor)
    total = 0
    matched: list[str] = []

    if values["text"] and phrase in values["text"]:
        total += FULL_TEXT_MATCH_SCORE
        matched.append("text:full")

    for token in tokenize_description(description):
        for field_name, points in TOKEN_MATCH_SCORES.items():
            value = values[field_name]
            if value and token in value:
                total += points
                matched.append(f"{field_name}:{token}")

    return MatchScore(total, tuple(matched))
