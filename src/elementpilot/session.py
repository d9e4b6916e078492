from __future__ import annotations

import logging
from pathlib import Path
import re
import threading
import time
from typing import Any, Callable, Sequence

from .action_catalog import (
    CLICK,
    CLOSE,
    EVALUATE,
    LAUNCH,
    RESIZE_WINDOW,
    SCREENSHOT,
    TYPE,
    VERIFY_ELEMENT_VISIBLE,
    VERIFY_TEXT_VISIBLE,
    VERIFY_VALUE,
)
from .config import AutomationConfig
from .driver import ElementHandleLike, UiDriver
from .errors import DriverError, ElementPilotError, NotConnected
from .launcher import AppLaunchConfig, launch_app
from .locator_ranker import format_locator_suggestions, rank_locators
from .models import (
    ConsoleLogEntry,
    LocatorCandidate,
    MockResponse,
    NetworkEntry,
    RecordedAction,
    RecordedElement,
    RecordingStatus,
    SessionState,
    Snapshot,
    VerificationResult,
)
from .observations import (
    CONSOLE_COLLECT_SCRIPT,
    CONSOLE_INTERCEPTOR_SCRIPT,
    CONSOLE_LEVELS,
    PERFORMANCE_KINDS,
    PERFORMANCE_SCRIPTS,
    ConsoleBuffer,
    MockRegistry,
    NetworkBuffer,
    format_console_logs,
    format_network_entries,
    format_performance_metrics,
)
from .recorder import ActionRecorder
from .resolver import resolve_reference
from .selector_rules import xpath_literal
from .snapshot import capture_snapshot, format_snapshot_as_text
from .synthesizer import synthesize_test

Launcher = Callable[[AppLaunchConfig], UiDriver]

DEFAULT_VERIFY_TIMEOUT_S = 5.0
_VERIFY_POLL_INTERVAL_S = 0.1
_EVALUATE_RECORD_LIMIT = 100


class AutomationSession:
    """One attached application plus its snapshot, action log and observation buffers.

    All state lives on the instance; every mutation happens under a re-entrant
    lock so one session can be shared between threads.
    """

    def __init__(self, config: AutomationConfig | None = None, *, launcher: Launcher = launch_app) -> None:
        self.config = config or AutomationConfig()
        self.logger = logging.getLogger("elementpilot.session")
        self._launcher = launcher
        self._lock = threading.RLock()

        self._driver: UiDriver | None = None
        self._app_path: str | None = None
        self._snapshot: Snapshot | None = None
        self._recorder = ActionRecorder()
        self._console = ConsoleBuffer()
        self._network = NetworkBuffer()
        self._mocks = MockRegistry()

    # Lifecycle

    @property
    def is_connected(self) -> bool:
        return self._driver is not None

    def connect(self, driver: UiDriver, app_path: str | None = None) -> None:
        with self._lock:
            self._release_driver()
            self._driver = driver
            self._app_path = app_path
            driver.subscribe_network(self._on_network_entry)
            self.logger.info("Attached to application%s", f" ({app_path})" if app_path else "")

    def launch(self, launch_config: AppLaunchConfig) -> None:
        with self._lock:
            self._release_driver()
            driver = self._launcher(launch_config)
            self.connect(driver, app_path=launch_config.binary_path)
            self._recorder.record_tool(LAUNCH, {"binary_path": launch_config.binary_path, "args": list(launch_config.args)})

    def close(self) -> None:
        with self._lock:
            self._require_driver()
            self._recorder.record_tool(CLOSE, {})
            self._release_driver()
            self.logger.info("Application closed")

    def _release_driver(self) -> None:
        driver = self._driver
        self._driver = None
        self._app_path = None
        self._snapshot = None
        self._console.clear()
        self._network.clear()
        self._mocks.clear()
        if driver is None:
            return
        try:
            driver.close()
        except DriverError as exc:
            self.logger.warning("Error closing application session: %s", exc)

    def _require_driver(self) -> UiDriver:
        if self._driver is None:
            raise NotConnected()
        return self._driver

    def _on_network_entry(self, entry: NetworkEntry) -> None:
        with self._lock:
            self._network.add(entry)

    def session_state(self) -> SessionState:
        with self._lock:
            status = self._recorder.status()
            if self._driver is None:
                return SessionState(
                    is_connected=False,
                    recording_enabled=status.enabled,
                    action_count=status.count,
                )
            try:
                title: str | None = self._driver.get_title()
            except DriverError:
                title = None
            return SessionState(
                is_connected=True,
                recording_enabled=status.enabled,
                action_count=status.count,
                app_path=self._app_path,
                window_title=title,
            )

    # Snapshots

    def capture_snapshot(self) -> Snapshot:
        with self._lock:
            driver = self._require_driver()
            self._snapshot = capture_snapshot(driver, self.config)
            return self._snapshot

    def get_snapshot(self) -> Snapshot:
        with self._lock:
            if self._snapshot is None:
                return self.capture_snapshot()
            return self._snapshot

    def format_snapshot_as_text(self) -> str:
        with self._lock:
            return format_snapshot_as_text(self._snapshot, self.config)

    def get_element_by_reference(self, reference: str) -> ElementHandleLike:
        with self._lock:
            driver = self._require_driver()
            return resolve_reference(driver, reference, self.get_snapshot(), self.config)

    def _recorded_element(self, reference: str) -> RecordedElement | None:
        descriptor = self._snapshot.get(reference) if self._snapshot else None
        return descriptor.to_recorded_element() if descriptor else None

    # Interactions

    def click(self, reference: str) -> None:
        with self._lock:
            driver = self._require_driver()
            handle = self.get_element_by_reference(reference)
            driver.click(handle)
            self._recorder.record_tool(CLICK, {"ref": reference}, self._recorded_element(reference))

    def type_text(self, reference: str, text: str, clear: bool = True) -> None:
        with self._lock:
            driver = self._require_driver()
            handle = self.get_element_by_reference(reference)
            if clear:
                driver.clear_value(handle)
            driver.set_value(handle, text)
            self._recorder.record_tool(
                TYPE,
                {"ref": reference, "text": text, "clear": clear},
                self._recorded_element(reference),
            )

    def screenshot(self, filename: str | None = None) -> bytes:
        with self._lock:
            driver = self._require_driver()
            data = driver.screenshot()
            if filename:
                Path(filename).write_bytes(data)
            self._recorder.record_tool(SCREENSHOT, {"filename": filename})
            return data

    def execute_script(self, script: str, args: Sequence[Any] | None = None) -> Any:
        with self._lock:
            driver = self._require_driver()
            result = driver.execute_script(script, args)
            self._recorder.record_tool(EVALUATE, {"script": script[:_EVALUATE_RECORD_LIMIT]})
            return result

    def resize_window(self, width: int, height: int) -> None:
        with self._lock:
            driver = self._require_driver()
            driver.set_window_size(width, height)
            self._recorder.record_tool(RESIZE_WINDOW, {"width": width, "height": height})

    # Verification

    def verify_element_visible(self, reference: str, timeout_s: float = DEFAULT_VERIFY_TIMEOUT_S) -> VerificationResult:
        with self._lock:
            driver = self._require_driver()
            try:
                handle = self.get_element_by_reference(reference)
                visible = _poll(lambda: driver.is_visible(handle), timeout_s)
            except ElementPilotError as exc:
                return VerificationResult(False, f"Verification failed for {reference}: {exc}")
            if not visible:
                return VerificationResult(False, f"Element {reference} is not visible")
            self._recorder.record_tool(VERIFY_ELEMENT_VISIBLE, {"ref": reference}, self._recorded_element(reference))
            return VerificationResult(True, f"Element {reference} is visible")

    def verify_text_visible(
        self,
        text: str,
        exact: bool = False,
        timeout_s: float = DEFAULT_VERIFY_TIMEOUT_S,
    ) -> VerificationResult:
        with self._lock:
            driver = self._require_driver()
            literal = xpath_literal(text)
            xpath = f"//*[text()={literal}]" if exact else f"//*[contains(text(), {literal})]"

            def _find() -> ElementHandleLike | None:
                for handle in driver.query_all(xpath):
                    if driver.is_visible(handle):
                        return handle
                return None

            try:
                handle = _poll(_find, timeout_s)
                actual = driver.get_text(handle) if handle is not None else ""
            except ElementPilotError as exc:
                return VerificationResult(False, f"Text verification failed: {exc}")
            if handle is None:
                return VerificationResult(False, f'Text "{text}" is not visible')
            self._recorder.record_tool(VERIFY_TEXT_VISIBLE, {"text": text, "exact": exact})
            return VerificationResult(True, f'Text "{text}" is visible (found: "{actual[:100]}")')

    def verify_value(
        self,
        reference: str,
        expected_value: str,
        timeout_s: float = DEFAULT_VERIFY_TIMEOUT_S,
    ) -> VerificationResult:
        with self._lock:
            driver = self._require_driver()
            try:
                handle = self.get_element_by_reference(reference)
                _poll(lambda: driver.is_visible(handle), timeout_s)
                actual = driver.get_value(handle)
            except ElementPilotError as exc:
                return VerificationResult(False, f"Value verification failed for {reference}: {exc}")
            if actual != expected_value:
                return VerificationResult(
                    False,
                    f'Element {reference} value mismatch. Expected: "{expected_value}", Actual: "{actual}"',
                )
            self._recorder.record_tool(
                VERIFY_VALUE,
                {"ref": reference, "expected_value": expected_value},
                self._recorded_element(reference),
            )
            return VerificationResult(True, f'Element {reference} has expected value "{expected_value}"')

    # Recording

    def start_recording(self) -> None:
        with self._lock:
            self._recorder.start()

    def stop_recording(self) -> list[RecordedAction]:
        with self._lock:
            return self._recorder.stop()

    def clear_recording(self) -> None:
        with self._lock:
            self._recorder.clear()

    def recording_status(self) -> RecordingStatus:
        with self._lock:
            return self._recorder.status()

    @property
    def recorded_actions(self) -> tuple[RecordedAction, ...]:
        with self._lock:
            return self._recorder.actions

    # Locators and synthesis

    def generate_locator(self, description: str) -> list[LocatorCandidate]:
        with self._lock:
            snapshot = self.capture_snapshot()
            return rank_locators(description, snapshot, self.config)

    def locator_report(self, description: str) -> str:
        with self._lock:
            candidates = self.generate_locator(description)
            return format_locator_suggestions(description, candidates, self._snapshot)

    def synthesize_test(
        self,
        target_format: str,
        test_name: str | None = None,
        app_path: str | None = None,
    ) -> str:
        with self._lock:
            actions = self._recorder.actions
            name = test_name or self.config.default_test_name
            path = app_path or self._app_path or self.config.default_app_path
        source = synthesize_test(
            actions,
            target_format,
            name,
            path,
            text_limit=self.config.resolver_text_limit,
            default_screenshot=self.config.default_screenshot_name,
        )
        self.logger.info("Generated %s test from %s recorded action(s)", target_format, len(actions))
        return source

    # Console, network and mocks

    def start_console_capture(self) -> None:
        with self._lock:
            self._require_driver().execute_script(CONSOLE_INTERCEPTOR_SCRIPT)
            self.logger.info("Console capture started")

    def stop_console_capture(self) -> int:
        with self._lock:
            payload = self._require_driver().execute_script(CONSOLE_COLLECT_SCRIPT)
            count = self._console.extend_from_payload(payload or [])
            self.logger.info("Console capture stopped with %s entries", count)
            return count

    def get_console_logs(self, level: str | None = None) -> list[ConsoleLogEntry]:
        if level and level not in CONSOLE_LEVELS:
            raise ValueError(f"Unknown console level: {level}. Expected one of: {', '.join(CONSOLE_LEVELS)}")
        with self._lock:
            return self._console.get(level)

    def console_report(self, level: str | None = None) -> str:
        entries = self.get_console_logs(level)
        if not entries:
            return f"No {level} logs captured" if level else "No console logs captured"
        return f"Console logs ({len(entries)}):\n{format_console_logs(entries)}"

    def clear_console_logs(self) -> None:
        with self._lock:
            self._console.clear()

    def get_network_entries(
        self,
        url: str | re.Pattern[str] | None = None,
        method: str | None = None,
    ) -> list[NetworkEntry]:
        with self._lock:
            return self._network.get(url=url, method=method)

    def network_report(
        self,
        url: str | re.Pattern[str] | None = None,
        method: str | None = None,
    ) -> str:
        entries = self.get_network_entries(url=url, method=method)
        if not entries:
            return "No network entries captured"
        return f"Network entries ({len(entries)}):\n{format_network_entries(entries)}"

    def clear_network_entries(self) -> None:
        with self._lock:
            self._network.clear()

    def add_mock_response(self, mock: MockResponse) -> None:
        with self._lock:
            self._mocks.add(mock)

    def get_mock_responses(self) -> list[MockResponse]:
        with self._lock:
            return self._mocks.get()

    def clear_mock_responses(self) -> None:
        with self._lock:
            self._mocks.clear()

    # Performance

    def get_performance_metrics(self, kind: str = "get") -> dict[str, Any] | None:
        script = PERFORMANCE_SCRIPTS.get(kind)
        if script is None:
            raise ValueError(f"Unknown performance kind: {kind}. Expected one of: {', '.join(PERFORMANCE_KINDS)}")
        with self._lock:
            payload = self._require_driver().execute_script(script)
        return payload if isinstance(payload, dict) else None

    def performance_report(self, kind: str = "get") -> str:
        return format_performance_metrics(kind, self.get_performance_metrics(kind))


def _poll(check: Callable[[], Any], timeout_s: float) -> Any:
    deadline = time.monotonic() + max(0.0, timeout_s)
    result = check()
    while not result and time.monotonic() < deadline:
        time.sleep(_VERIFY_POLL_INTERVAL_S)
        result = check()
    return result
