import pytest

from elementpilot.config import AutomationConfig
from elementpilot.errors import ElementNotLocatable, ReferenceNotFound
from elementpilot.models import BoundingBox, ElementDescriptor, Snapshot
from elementpilot.resolver import (
    RESOLUTION_STRATEGIES,
    is_within_tolerance,
    locate_element,
    resolve_reference,
)
from elementpilot.snapshot import capture_snapshot

from fakes import FakeDriver, FakeElement


def _descriptor(
    tag: str = "button",
    *,
    text: str = "",
    aria_label: str | None = None,
    role: str | None = None,
    attributes: dict[str, str] | None = None,
    box: BoundingBox | None = None,
) -> ElementDescriptor:
    return ElementDescriptor(
        reference="e1",
        tag_name=tag,
        text=text,
        aria_label=aria_label,
        role=role,
        attributes=attributes or {},
        bounding_box=box,
    )


def test_strategy_table_order() -> None:
    assert [strategy.name for strategy in RESOLUTION_STRATEGIES] == ["id", "name", "aria-label", "text", "role"]


def test_id_wins_when_element_moved(fake_driver: FakeDriver, login_elements: list[FakeElement]) -> None:
    snapshot = capture_snapshot(fake_driver)
    login_elements[2].box = BoundingBox(400, 500, 80, 30)

    resolved = locate_element(fake_driver, snapshot.elements["e3"])

    assert resolved.handle is login_elements[2]
    assert resolved.strategy == "id"


def test_name_used_when_id_absent() -> None:
    field = FakeElement("input", attributes={"name": "password"})
    resolved = locate_element(FakeDriver([field]), _descriptor("input", attributes={"name": "password"}))

    assert resolved.handle is field
    assert resolved.strategy == "name"


def test_aria_label_used_after_stable_attributes() -> None:
    button = FakeElement("button", attributes={"aria-label": "Close dialog"})
    resolved = locate_element(FakeDriver([button]), _descriptor(aria_label="Close dialog"))

    assert resolved.handle is button
    assert resolved.strategy == "aria-label"


def test_text_strategy_only_for_links_and_buttons() -> None:
    button = FakeElement("button", text="Save changes")
    driver = FakeDriver([button], selectors={"//button[contains(text(), 'Save changes')]": [button]})

    resolved = locate_element(driver, _descriptor(text="Save changes"))
    assert resolved.strategy == "text"

    label = FakeElement("span", text="Save changes")
    driver = FakeDriver([label], selectors={"//span[contains(text(), 'Save changes')]": [label]})
    with pytest.raises(ElementNotLocatable):
        locate_element(driver, _descriptor("span", text="Save changes"))
    assert not any(query.startswith("//") for query in driver.queries)


def test_text_strategy_truncates_to_resolver_limit() -> None:
    text = "Continue to the next step of the wizard"
    driver = FakeDriver([])
    with pytest.raises(ElementNotLocatable):
        locate_element(driver, _descriptor("a", text=text))

    assert f"//a[contains(text(), '{text[:30]}')]" in driver.queries


def test_role_strategy() -> None:
    tab = FakeElement("div", attributes={"role": "tab"})
    resolved = locate_element(FakeDriver([tab]), _descriptor("div", role="tab"))

    assert resolved.handle is tab
    assert resolved.strategy == "role"


def test_invisible_matches_are_passed_over() -> None:
    hidden = FakeElement("input", attributes={"id": "query"}, visible=False)
    shown = FakeElement("input", attributes={"id": "query"})
    resolved = locate_element(FakeDriver([hidden, shown]), _descriptor("input", attributes={"id": "query"}))

    assert resolved.handle is shown


def test_failing_strategy_falls_through_to_next() -> None:
    field = FakeElement("input", attributes={"id": "email", "name": "email"})
    driver = FakeDriver([field])
    driver.failing_selectors.add("#email")

    resolved = locate_element(driver, _descriptor("input", attributes={"id": "email", "name": "email"}))

    assert resolved.strategy == "name"


def test_positional_fallback_within_tolerance() -> None:
    recorded = BoundingBox(100, 200, 50, 20)
    moved = FakeElement("button", box=BoundingBox(105, 195, 50, 20))
    resolved = locate_element(FakeDriver([moved]), _descriptor(box=recorded))

    assert resolved.handle is moved
    assert resolved.strategy == "position"


def test_positional_fallback_rejects_large_shift() -> None:
    recorded = BoundingBox(100, 200, 50, 20)
    moved = FakeElement("button", box=BoundingBox(115, 200, 50, 20))

    with pytest.raises(ElementNotLocatable) as error:
        locate_element(FakeDriver([moved]), _descriptor(box=recorded))

    assert str(error.value) == "Could not find element: e1 (button)"


def test_positional_tolerance_is_configurable() -> None:
    recorded = BoundingBox(100, 200, 50, 20)
    moved = FakeElement("button", box=BoundingBox(115, 200, 50, 20))

    resolved = locate_element(FakeDriver([moved]), _descriptor(box=recorded), AutomationConfig(position_tolerance_px=20))

    assert resolved.strategy == "position"


def test_is_within_tolerance_checks_both_axes() -> None:
    base = BoundingBox(0, 0, 10, 10)
    assert is_within_tolerance(base, BoundingBox(9, 9, 10, 10), 10)
    assert not is_within_tolerance(base, BoundingBox(0, 12, 10, 10), 10)
    assert not is_within_tolerance(base, BoundingBox(-12, 0, 10, 10), 10)


def test_unknown_reference_lists_available(fake_driver: FakeDriver) -> None:
    snapshot = capture_snapshot(fake_driver)

    with pytest.raises(ReferenceNotFound) as error:
        resolve_reference(fake_driver, "e42", snapshot)

    assert error.value.available == ("e1", "e2", "e3", "e4")
    assert str(error.value) == "Element ref not found: e42. Available refs: e1, e2, e3, e4"


def test_resolve_reference_returns_live_handle(fake_driver: FakeDriver, login_elements: list[FakeElement]) -> None:
    snapshot = capture_snapshot(fake_driver)

    assert resolve_reference(fake_driver, "e2", snapshot) is login_elements[1]


def test_unknown_reference_on_empty_snapshot() -> None:
    snapshot = Snapshot(title="", url="", elements={}, timestamp=0.0)

    with pytest.raises(ReferenceNotFound, match=r"Available refs: \(none\)"):
        resolve_reference(FakeDriver([]), "e1", snapshot)
