import re
import threading
from pathlib import Path

import pytest

from elementpilot.config import AutomationConfig
from elementpilot.errors import ElementNotLocatable, NotConnected, ReferenceNotFound
from elementpilot.launcher import AppLaunchConfig
from elementpilot.models import MockResponse, NetworkEntry, RecordedElement
from elementpilot.observations import CONSOLE_COLLECT_SCRIPT, CONSOLE_INTERCEPTOR_SCRIPT, PERFORMANCE_SCRIPTS
from elementpilot.session import AutomationSession

from fakes import FakeDriver, FakeElement


def _connected(driver: FakeDriver, app_path: str | None = "/apps/demo") -> AutomationSession:
    session = AutomationSession()
    session.connect(driver, app_path=app_path)
    return session


def test_operations_require_connection() -> None:
    session = AutomationSession()

    assert session.is_connected is False
    for call in (
        session.capture_snapshot,
        session.close,
        lambda: session.click("e1"),
        lambda: session.type_text("e1", "x"),
        lambda: session.screenshot(),
        lambda: session.execute_script("return 1"),
        lambda: session.resize_window(800, 600),
        lambda: session.verify_text_visible("x"),
        lambda: session.generate_locator("x"),
        session.start_console_capture,
    ):
        with pytest.raises(NotConnected):
            call()


def test_local_operations_work_without_connection() -> None:
    session = AutomationSession()
    session.start_recording()

    assert session.recording_status().enabled is True
    assert session.format_snapshot_as_text() == "No snapshot available"
    assert session.get_console_logs() == []
    assert "describe('Electron App Tests'" in session.synthesize_test("webdriverio_js")


def test_session_state(fake_driver: FakeDriver) -> None:
    assert AutomationSession().session_state().is_connected is False

    session = _connected(fake_driver)
    state = session.session_state()

    assert state.is_connected is True
    assert state.app_path == "/apps/demo"
    assert state.window_title == "Login"
    assert state.recording_enabled is False
    assert state.action_count == 0


def test_get_snapshot_captures_on_demand(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)

    snapshot = session.get_snapshot()

    assert snapshot.references == ["e1", "e2", "e3", "e4"]
    assert session.get_snapshot() is snapshot
    assert session.format_snapshot_as_text().startswith("Window: Login\nURL: app://login\n")


def test_click_and_type_are_recorded_with_element_info(
    fake_driver: FakeDriver,
    login_elements: list[FakeElement],
) -> None:
    session = _connected(fake_driver)
    session.start_recording()
    session.capture_snapshot()
    login_elements[0].value = "old"

    session.type_text("e1", "me@x.io")
    session.type_text("e1", ".uk", clear=False)
    session.click("e3")

    assert login_elements[0].value == "me@x.io.uk"
    assert login_elements[2].clicks == 1

    actions = session.stop_recording()
    assert [action.tool for action in actions] == ["type", "type", "click"]
    assert actions[0].params == {"ref": "e1", "text": "me@x.io", "clear": True}
    assert actions[1].params["clear"] is False
    assert actions[2].element_info == RecordedElement(
        reference="e3",
        tag_name="button",
        text="Submit",
        attributes={"id": "submit", "class": "btn primary", "aria-label": "Submit"},
    )


def test_actions_are_not_recorded_while_idle(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)
    session.click("e3")

    assert session.recorded_actions == ()


def test_unknown_reference_propagates(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)

    with pytest.raises(ReferenceNotFound):
        session.click("e99")


def test_vanished_element_raises_not_locatable(fake_driver: FakeDriver, login_elements: list[FakeElement]) -> None:
    session = _connected(fake_driver)
    session.capture_snapshot()
    fake_driver.elements.remove(login_elements[2])

    with pytest.raises(ElementNotLocatable):
        session.click("e3")


def test_screenshot_writes_file_and_records(fake_driver: FakeDriver, tmp_path: Path) -> None:
    session = _connected(fake_driver)
    session.start_recording()
    target = tmp_path / "shot.png"

    data = session.screenshot(str(target))
    session.screenshot()

    assert data == fake_driver.screenshot_bytes
    assert target.read_bytes() == fake_driver.screenshot_bytes
    assert [action.params for action in session.recorded_actions] == [{"filename": str(target)}, {"filename": None}]


def test_execute_script_records_truncated_script(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)
    session.start_recording()
    fake_driver.script_results.append(42)
    script = "return " + "1 + " * 60 + "1"

    assert session.execute_script(script, [1]) == 42
    assert fake_driver.scripts[-1] == (script, [1])
    assert session.recorded_actions[0].tool == "evaluate"
    assert session.recorded_actions[0].params == {"script": script[:100]}


def test_resize_window(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)
    session.start_recording()

    session.resize_window(1024, 768)

    assert fake_driver.window_sizes == [(1024, 768)]
    assert session.recorded_actions[0].params == {"width": 1024, "height": 768}


def test_close_keeps_action_log_and_discards_buffers(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)
    session.start_recording()
    session.capture_snapshot()
    session.add_mock_response(MockResponse(url="/api/user"))
    fake_driver.emit_network(NetworkEntry(url="app://api/user", method="GET", status=200))

    session.close()

    assert fake_driver.closed is True
    assert session.is_connected is False
    assert session.format_snapshot_as_text() == "No snapshot available"
    assert session.get_network_entries() == []
    assert session.get_mock_responses() == []
    assert [action.tool for action in session.recorded_actions] == ["close"]


def test_connect_replaces_previous_driver(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)
    other = FakeDriver([], title="Other")

    session.connect(other)

    assert fake_driver.closed is True
    assert session.session_state().window_title == "Other"
    assert session.session_state().app_path is None


def test_launch_uses_launcher_and_records(fake_driver: FakeDriver) -> None:
    launched: list[AppLaunchConfig] = []

    def launcher(config: AppLaunchConfig) -> FakeDriver:
        launched.append(config)
        return fake_driver

    session = AutomationSession(launcher=launcher)
    session.start_recording()
    session.launch(AppLaunchConfig(binary_path="/apps/demo", args=["--dev"]))

    assert launched[0].binary_path == "/apps/demo"
    assert session.is_connected is True
    assert session.recorded_actions[0].tool == "launch"
    assert session.recorded_actions[0].params == {"binary_path": "/apps/demo", "args": ["--dev"]}


def test_verify_element_visible(fake_driver: FakeDriver, login_elements: list[FakeElement]) -> None:
    session = _connected(fake_driver)
    session.start_recording()

    result = session.verify_element_visible("e3", timeout_s=0)
    assert result.ok is True
    assert result.message == "Element e3 is visible"
    assert session.recorded_actions[-1].tool == "verify_element_visible"

    missing = session.verify_element_visible("e99", timeout_s=0)
    assert missing.ok is False
    assert "Element ref not found: e99" in missing.message
    assert len(session.recorded_actions) == 1


def test_verify_text_visible(fake_driver: FakeDriver, login_elements: list[FakeElement]) -> None:
    fake_driver.selectors["//*[contains(text(), 'Forgot')]"] = [login_elements[3]]
    session = _connected(fake_driver)
    session.start_recording()

    found = session.verify_text_visible("Forgot", timeout_s=0)
    assert found.ok is True
    assert found.message == 'Text "Forgot" is visible (found: "Forgot password?")'
    assert session.recorded_actions[-1].params == {"text": "Forgot", "exact": False}

    absent = session.verify_text_visible("Forgot", exact=True, timeout_s=0)
    assert absent.ok is False
    assert "//*[text()='Forgot']" in fake_driver.queries


def test_verify_value(fake_driver: FakeDriver, login_elements: list[FakeElement]) -> None:
    login_elements[0].value = "me@x.io"
    session = _connected(fake_driver)
    session.start_recording()

    assert session.verify_value("e1", "me@x.io", timeout_s=0).ok is True
    mismatch = session.verify_value("e1", "other", timeout_s=0)

    assert mismatch.ok is False
    assert mismatch.message == 'Element e1 value mismatch. Expected: "other", Actual: "me@x.io"'
    assert [action.tool for action in session.recorded_actions] == ["verify_value"]
    assert session.recorded_actions[0].params == {"ref": "e1", "expected_value": "me@x.io"}


def test_generate_locator_recaptures_snapshot(fake_driver: FakeDriver, login_elements: list[FakeElement]) -> None:
    session = _connected(fake_driver)
    session.capture_snapshot()
    fake_driver.elements.append(FakeElement("button", text="Sign up", attributes={"id": "signup"}))

    ranked = session.generate_locator("sign up")

    assert ranked[0].reference == "e5"
    assert ranked[0].best_selector == "#signup"
    assert "Best Locator: #signup" in session.locator_report("sign up")


def test_synthesize_uses_connected_app_path_and_defaults(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver, app_path="/apps/demo")
    session.start_recording()
    session.click("e3")

    source = session.synthesize_test("playwright_js")

    assert "test('test electron app', async () => {" in source
    assert "executablePath: '/apps/demo'" in source
    assert "        await window.click('#submit');" in source.splitlines()

    named = session.synthesize_test("webdriverio_ts", test_name="login_test", app_path="/other")
    assert "it('login test', async () => {" in named
    assert "appBinaryPath: '/other'" in named


def test_synthesize_falls_back_to_configured_app_path() -> None:
    session = AutomationSession(AutomationConfig(default_app_path="/opt/app"))

    assert "executablePath: '/opt/app'" in session.synthesize_test("playwright_ts")


def test_console_capture_roundtrip(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)
    fake_driver.script_results.extend(
        [
            True,
            [
                {"level": "log", "message": "ready", "timestamp": 1_000},
                {"level": "error", "message": "boom", "timestamp": 2_000},
                "garbage",
            ],
        ]
    )

    session.start_console_capture()
    count = session.stop_console_capture()

    assert [script for script, _ in fake_driver.scripts] == [CONSOLE_INTERCEPTOR_SCRIPT, CONSOLE_COLLECT_SCRIPT]
    assert count == 2
    assert [entry.message for entry in session.get_console_logs()] == ["ready", "boom"]
    assert [entry.message for entry in session.get_console_logs("error")] == ["boom"]
    assert session.get_console_logs()[0].timestamp == 1.0

    with pytest.raises(ValueError):
        session.get_console_logs("verbose")

    session.clear_console_logs()
    assert session.get_console_logs() == []


def test_network_entries_are_filtered(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)
    fake_driver.emit_network(NetworkEntry(url="https://api.test/users", method="GET", status=200))
    fake_driver.emit_network(NetworkEntry(url="https://api.test/users", method="POST", status=201))
    fake_driver.emit_network(NetworkEntry(url="https://cdn.test/logo.png", method="GET", status=304))

    assert len(session.get_network_entries()) == 3
    assert [entry.status for entry in session.get_network_entries(url="api.test")] == [200, 201]
    assert [entry.status for entry in session.get_network_entries(method="GET")] == [200, 304]
    assert [entry.status for entry in session.get_network_entries(url=re.compile(r"\.png$"))] == [304]
    assert [entry.request_id for entry in session.get_network_entries()] == ["req1", "req2", "req3"]

    session.clear_network_entries()
    assert session.get_network_entries() == []


def test_mock_responses_are_stored() -> None:
    session = AutomationSession()
    mock = MockResponse(url=re.compile(r"/api/.*"), status=503, body="{}")

    session.add_mock_response(mock)

    assert session.get_mock_responses() == [mock]
    session.clear_mock_responses()
    assert session.get_mock_responses() == []


def test_recorded_element_info_cannot_be_changed(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)
    session.start_recording()
    session.click("e3")

    element_info = session.recorded_actions[0].element_info
    assert element_info is not None
    with pytest.raises(TypeError):
        element_info.attributes["id"] = "other"  # type: ignore[index]

    assert "await browser.$('#submit').click();" in session.synthesize_test("webdriverio_js")


def test_console_and_network_reports(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)

    assert session.console_report() == "No console logs captured"
    assert session.console_report("error") == "No error logs captured"
    assert session.network_report() == "No network entries captured"

    fake_driver.script_results.extend([True, [{"level": "warn", "message": "slow", "timestamp": 1_000}]])
    session.start_console_capture()
    session.stop_console_capture()
    fake_driver.emit_network(NetworkEntry(url="https://api.test/users", method="GET", status=200))

    assert session.console_report() == "Console logs (1):\n[1970-01-01T00:00:01.000+00:00] [WARN] slow"
    assert session.network_report(method="GET") == "Network entries (1):\nGET https://api.test/users -> 200 (0ms)"


def test_performance_metrics(fake_driver: FakeDriver) -> None:
    session = _connected(fake_driver)
    megabyte = 1024 * 1024
    fake_driver.script_results.extend(
        [
            {"usedJSHeapSize": megabyte, "totalJSHeapSize": 4 * megabyte, "jsHeapSizeLimit": 8 * megabyte},
            None,
        ]
    )

    metrics = session.get_performance_metrics("memory")
    report = session.performance_report("timing")

    assert metrics == {"usedJSHeapSize": megabyte, "totalJSHeapSize": 4 * megabyte, "jsHeapSizeLimit": 8 * megabyte}
    assert report == "Navigation timing not available"
    assert [script for script, _ in fake_driver.scripts] == [PERFORMANCE_SCRIPTS["memory"], PERFORMANCE_SCRIPTS["timing"]]
    assert session.recorded_actions == ()

    with pytest.raises(ValueError, match="Unknown performance kind"):
        session.get_performance_metrics("cpu")


def test_performance_metrics_require_connection() -> None:
    with pytest.raises(NotConnected):
        AutomationSession().get_performance_metrics()


def test_status_and_text_accessors_wait_for_session_lock() -> None:
    session = AutomationSession()
    results: list[object] = []
    readers = [
        threading.Thread(target=lambda: results.append(session.recording_status())),
        threading.Thread(target=lambda: results.append(session.format_snapshot_as_text())),
    ]

    with session._lock:
        for reader in readers:
            reader.start()
        for reader in readers:
            reader.join(timeout=0.05)
        assert results == []

    for reader in readers:
        reader.join(timeout=1.0)
    assert len(results) == 2
