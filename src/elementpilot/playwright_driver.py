from __future__ import annotations

from contextlib import contextmanager
import logging
import subprocess
from typing import TYPE_CHECKING, Any, Iterator, Sequence

from playwright.sync_api import Error as PlaywrightError

from .driver import NetworkCallback
from .errors import DriverError
from .models import BoundingBox, NetworkEntry

if TYPE_CHECKING:
    from playwright.sync_api import Browser, ElementHandle, Page, Playwright, Response

_TAG_NAME_SCRIPT = "(el) => (el.tagName || '').toLowerCase()"
_VALUE_SCRIPT = """
(el) => {
  if (el && 'value' in el && el.value !== undefined && el.value !== null) {
    return String(el.value);
  }
  return el.getAttribute('value') || '';
}
"""
_SCRIPT_WRAPPER = "(args) => (function() {\n%s\n}).apply(null, args)"


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except PlaywrightError as exc:
        raise DriverError(f"{operation} failed: {exc.message}") from exc


class PlaywrightDriver:
    """``UiDriver`` backed by a Playwright page attached over CDP."""

    def __init__(
        self,
        page: Page,
        *,
        browser: Browser | None = None,
        playwright: Playwright | None = None,
        process: subprocess.Popen[bytes] | None = None,
    ) -> None:
        self.page = page
        self._browser = browser
        self._playwright = playwright
        self._process = process
        self._closed = False
        self.logger = logging.getLogger("elementpilot.driver")

    def get_title(self) -> str:
        with _translate_errors("get_title"):
            return self.page.title()

    def get_url(self) -> str:
        return self.page.url

    def query_all(self, selector: str) -> list[ElementHandle]:
        with _translate_errors(f"query_all({selector!r})"):
            return self.page.query_selector_all(selector)

    def is_visible(self, handle: ElementHandle) -> bool:
        with _translate_errors("is_visible"):
            return handle.is_visible()

    def is_enabled(self, handle: ElementHandle) -> bool:
        with _translate_errors("is_enabled"):
            return handle.is_enabled()

    def get_tag_name(self, handle: ElementHandle) -> str:
        with _translate_errors("get_tag_name"):
            return str(handle.evaluate(_TAG_NAME_SCRIPT) or "")

    def get_attribute(self, handle: ElementHandle, name: str) -> str | None:
        with _translate_errors(f"get_attribute({name!r})"):
            return handle.get_attribute(name)

    def get_text(self, handle: ElementHandle) -> str:
        with _translate_errors("get_text"):
            return handle.inner_text()

    def get_value(self, handle: ElementHandle) -> str:
        with _translate_errors("get_value"):
            return str(handle.evaluate(_VALUE_SCRIPT) or "")

    def get_bounding_box(self, handle: ElementHandle) -> BoundingBox | None:
        with _translate_errors("get_bounding_box"):
            box = handle.bounding_box()
        if not box:
            return None
        return BoundingBox(x=box["x"], y=box["y"], width=box["width"], height=box["height"])

    def click(self, handle: ElementHandle) -> None:
        with _translate_errors("click"):
            handle.click()

    def set_value(self, handle: ElementHandle, text: str) -> None:
        # Types at the caret, so an uncleared field keeps its current content.
        with _translate_errors("set_value"):
            handle.type(text)

    def clear_value(self, handle: ElementHandle) -> None:
        with _translate_errors("clear_value"):
            handle.fill("")

    def execute_script(self, script: str, args: Sequence[Any] | None = None) -> Any:
        with _translate_errors("execute_script"):
            return self.page.evaluate(_SCRIPT_WRAPPER % script, list(args or []))

    def screenshot(self) -> bytes:
        with _translate_errors("screenshot"):
            return self.page.screenshot()

    def set_window_size(self, width: int, height: int) -> None:
        with _translate_errors("set_window_size"):
            self.page.set_viewport_size({"width": int(width), "height": int(height)})

    def subscribe_network(self, callback: NetworkCallback) -> None:
        def _on_response(response: Response) -> None:
            callback(_network_entry_from_response(response))

        self.page.on("response", _on_response)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._browser is not None:
            try:
                self._browser.close()
            except PlaywrightError as exc:
                self.logger.warning("Error closing browser connection: %s", exc.message)
        if self._process is not None:
            terminate_process(self._process)
        if self._playwright is not None:
            self._playwright.stop()


def _network_entry_from_response(response: Response) -> NetworkEntry:
    request = response.request
    timing = request.timing or {}
    response_start = float(timing.get("responseStart", -1) or -1)
    return NetworkEntry(
        url=response.url,
        method=request.method,
        status=response.status,
        response_time_ms=round(response_start, 2) if response_start >= 0 else None,
        content_type=response.headers.get("content-type"),
    )


def terminate_process(process: subprocess.Popen[bytes], timeout: float = 5.0) -> None:
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait(timeout=timeout)
