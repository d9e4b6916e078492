from __future__ import annotations

import pytest

from elementpilot.models import BoundingBox

from fakes import FakeDriver, FakeElement


@pytest.fixture
def login_elements() -> list[FakeElement]:
    return [
        FakeElement(
            "input",
            attributes={"id": "email", "name": "email", "type": "email", "placeholder": "Email"},
            box=BoundingBox(20, 40, 200, 24),
        ),
        FakeElement(
            "input",
            attributes={"name": "password", "type": "password"},
            box=BoundingBox(20, 80, 200, 24),
        ),
        FakeElement(
            "button",
            text="Submit",
            attributes={"id": "submit", "aria-label": "Submit", "class": "btn primary"},
            box=BoundingBox(20, 120, 80, 30),
        ),
        FakeElement("a", text="Forgot password?", attributes={"href": "#forgot"}, box=BoundingBox(120, 120, 90, 16)),
    ]


@pytest.fixture
def fake_driver(login_elements: list[FakeElement]) -> FakeDriver:
    return FakeDriver(login_elements, title="Login", url="app://login")
