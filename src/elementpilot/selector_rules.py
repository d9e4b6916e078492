from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any, Literal, Mapping, Sequence

SelectorStrategy = Literal["id", "name", "aria-label", "text", "tag"]

TEXT_SELECTOR_TAGS = frozenset({"a", "button"})
CLICKABLE_TAGS = frozenset({"a", "button", "input"})
CLICKABLE_ROLES = frozenset({"button", "link"})

_CSS_SAFE_ID_PATTERN = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_-]*$")


@dataclass(frozen=True, slots=True)
class SelectorChoice:
    strategy: SelectorStrategy
    selector: str
    tag: str
    text: str | None = None


def normalize_space(value: Any, limit: int = 200) -> str:
    if value is None:
        return ""
    compact = re.sub(r"\s+", " ", str(value)).strip()
    return compact[:limit] if compact else ""


def normalize_classes(raw: Sequence[str] | str | None) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        items = raw.split()
    else:
        items = [item for item in raw if isinstance(item, str)]

    seen: set[str] = set()
    normalized: list[str] = []
    for item in items:
        clean = item.strip()
        if not clean or clean in seen:
            continue
        seen.add(clean)
        normalized.append(clean)
    return normalized


def is_css_safe_id(value: str) -> bool:
    return bool(_CSS_SAFE_ID_PATTERN.fullmatch(value.strip()))


def escape_css_attribute_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def escape_css_identifier(value: str) -> str:
    escaped: list[str] = []
    for char in value:
        if char.isalnum() or char in ("-", "_"):
            escaped.append(char)
        else:
            escaped.append(f"\\{ord(char):x} ")
    return "".join(escaped)


def xpath_literal(value: str) -> str:
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    pieces = value.split("'")
    quoted = [f"'{piece}'" for piece in pieces]
    return "concat(" + ", \"'\", ".join(quoted) + ")"


def build_id_selector_candidates(raw_id: Any) -> list[str]:
    if raw_id is None:
        return []

    id_value = str(raw_id).strip()
    if not id_value:
        return []

    selectors: list[str] = []
    if is_css_safe_id(id_value):
        selectors.append(f"#{id_value}")
    selectors.append(f'[id="{escape_css_attribute_value(id_value)}"]')
    return selectors


def id_selector(raw_id: Any) -> str | None:
    candidates = build_id_selector_candidates(raw_id)
    return candidates[0] if candidates else None


def attribute_selector(attribute: str, value: str | None) -> str | None:
    text = (value or "").strip()
    if not text:
        return None
    return f'[{attribute}="{escape_css_attribute_value(text)}"]'


def text_contains_xpath(tag: str, text: str | None, limit: int) -> str | None:
    snippet = (text or "")[:limit]
    if not snippet.strip():
        return None
    return f"//{tag}[contains(text(), {xpath_literal(snippet)})]"


def tag_class_selector(tag: str, class_value: str | None) -> str | None:
    classes = normalize_classes(class_value)
    if not classes:
        return None
    return f"{tag}.{escape_css_identifier(classes[0])}"


def is_clickable_element(tag: str, role: str | None) -> bool:
    return tag.strip().lower() in CLICKABLE_TAGS or (role or "").strip().lower() in CLICKABLE_ROLES


def preferred_selector(
    tag: str,
    text: str | None,
    attributes: Mapping[str, str],
    *,
    text_limit: int = 30,
) -> SelectorChoice:
    """Pick the single most stable selector for a recorded element.

    Preference is id, then name, then aria-label, then visible text for links
    and buttons, then the bare tag name.
    """
    tag_name = (tag or "").strip().lower() or "*"

    selector = id_selector(attributes.get("id"))
    if selector:
        return SelectorChoice("id", selector, tag_name)

    selector = attribute_selector("name", attributes.get("name"))
    if selector:
        return SelectorChoice("name", selector, tag_name)

    selector = attribute_selector("aria-label", attributes.get("aria-label"))
    if selector:
        return SelectorChoice("aria-label", selector, tag_name)

    snippet = normalize_space(text, limit=text_limit)
    if snippet and tag_name in TEXT_SELECTOR_TAGS:
        return SelectorChoice("text", f'{tag_name}:has-text("{escape_css_attribute_value(snippet)}")', tag_name, snippet)

    return SelectorChoice("tag", tag_name, tag_name)
