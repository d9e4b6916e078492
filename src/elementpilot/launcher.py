from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
import subprocess
import time
from typing import TYPE_CHECKING

from playwright.sync_api import Error as PlaywrightError

from .errors import DriverError, LaunchError
from .playwright_driver import PlaywrightDriver, terminate_process

if TYPE_CHECKING:
    from playwright.sync_api import Browser, Page, Playwright

logger = logging.getLogger("elementpilot.launcher")

_CONNECTION_REFUSED_HINTS = (
    "econnrefused",
    "connection refused",
    "connect_over_cdp",
)


@dataclass(slots=True)
class AppLaunchConfig:
    binary_path: str
    args: list[str] = field(default_factory=list)
    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    window_width: int = 1280
    window_height: int = 720
    debugging_port: int = 9222
    wait_timeout_ms: int = 10000
    poll_interval_s: float = 0.25


def build_launch_command(config: AppLaunchConfig) -> list[str]:
    command = [config.binary_path, f"--remote-debugging-port={config.debugging_port}"]
    command.extend(str(arg) for arg in config.args)
    return command


def _is_connection_refused(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(hint in message for hint in _CONNECTION_REFUSED_HINTS)


def launch_app(config: AppLaunchConfig) -> PlaywrightDriver:
    from playwright.sync_api import sync_playwright

    binary = config.binary_path.strip()
    if not binary:
        raise LaunchError("binary_path is required to launch an application.")

    command = build_launch_command(config)
    logger.info("Launching application: %s", " ".join(command))
    try:
        process = subprocess.Popen(
            command,
            cwd=config.cwd or None,
            env={**os.environ, **config.env},
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as exc:
        raise LaunchError(f"Could not start {binary}: {exc}") from exc

    deadline = time.monotonic() + config.wait_timeout_ms / 1000.0
    playwright = sync_playwright().start()
    try:
        browser = _connect_with_retry(playwright, process, config, deadline)
        page = _first_window(browser, config, deadline)
    except (LaunchError, PlaywrightError) as exc:
        playwright.stop()
        terminate_process(process)
        if isinstance(exc, LaunchError):
            raise
        raise LaunchError(f"Could not attach to {binary}: {exc.message}") from exc

    driver = PlaywrightDriver(page, browser=browser, playwright=playwright, process=process)
    try:
        driver.set_window_size(config.window_width, config.window_height)
    except DriverError as exc:
        logger.warning("Could not resize window to %sx%s: %s", config.window_width, config.window_height, exc)
    logger.info("Application attached on port %s", config.debugging_port)
    return driver


def _connect_with_retry(
    playwright: Playwright,
    process: subprocess.Popen[bytes],
    config: AppLaunchConfig,
    deadline: float,
) -> Browser:
    endpoint = f"http://127.0.0.1:{config.debugging_port}"
    last_error: PlaywrightError | None = None
    while time.monotonic() < deadline:
        exit_code = process.poll()
        if exit_code is not None:
            raise LaunchError(f"{config.binary_path} exited with code {exit_code} before a window opened.")
        remaining_ms = max(1.0, (deadline - time.monotonic()) * 1000.0)
        try:
            return playwright.chromium.connect_over_cdp(endpoint, timeout=remaining_ms)
        except PlaywrightError as exc:
            if not _is_connection_refused(exc):
                raise
            last_error = exc
            time.sleep(config.poll_interval_s)

    hint = " The binary may not support --remote-debugging-port." if last_error else ""
    raise LaunchError(f"Timed out after {config.wait_timeout_ms}ms waiting for {endpoint}.{hint}")


def _first_window(browser: Browser, config: AppLaunchConfig, deadline: float) -> Page:
    while time.monotonic() < deadline:
        for context in browser.contexts:
            if context.pages:
                return context.pages[0]
        time.sleep(config.poll_interval_s)
    raise LaunchError(f"Timed out after {config.wait_timeout_ms}ms waiting for the first window.")
