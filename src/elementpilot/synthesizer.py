"""Compile a recorded action log into test source.

Each recorded action becomes one statement node. A framework renderer turns
nodes into lines, and a target template wraps them with imports, setup and
teardown for one (framework, language) pair. The output depends only on the
arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Callable, Mapping, Sequence, Union

from .action_catalog import CLICK, CLOSE, LAUNCH, SCREENSHOT, TYPE
from .errors import UnsupportedFormat
from .models import RecordedAction
from .selector_rules import SelectorChoice, preferred_selector

logger = logging.getLogger("elementpilot.synthesizer")

DEFAULT_SCREENSHOT_NAME = "screenshot.png"
BODY_INDENT = "        "


@dataclass(frozen=True, slots=True)
class CommentStatement:
    text: str


@dataclass(frozen=True, slots=True)
class ClickStatement:
    target: SelectorChoice


@dataclass(frozen=True, slots=True)
class FillStatement:
    target: SelectorChoice
    text: str
    clear: bool


@dataclass(frozen=True, slots=True)
class ScreenshotStatement:
    filename: str


@dataclass(frozen=True, slots=True)
class TodoStatement:
    tool: str
    params_json: str


Statement = Union[CommentStatement, ClickStatement, FillStatement, ScreenshotStatement, TodoStatement]


def _params_json(params: Mapping[str, Any]) -> str:
    return json.dumps(dict(params), ensure_ascii=True, default=str)


def _selector_for(action: RecordedAction, text_limit: int) -> SelectorChoice | None:
    info = action.element_info
    if info is None:
        return None
    return preferred_selector(info.tag_name, info.text, info.attributes, text_limit=text_limit)


def translate_action(
    action: RecordedAction,
    *,
    text_limit: int = 30,
    default_screenshot: str = DEFAULT_SCREENSHOT_NAME,
) -> Statement:
    params = action.params
    tool = action.tool

    if tool == LAUNCH:
        return CommentStatement(f"App launched: {params.get('binary_path', '')}")

    if tool == CLICK:
        target = _selector_for(action, text_limit)
        if target is None:
            return CommentStatement(f"Click on element {params.get('ref', '?')}")
        return ClickStatement(target)

    if tool == TYPE:
        text = str(params.get("text", ""))
        target = _selector_for(action, text_limit)
        if target is None:
            return CommentStatement(f"Type {json.dumps(text)} into element {params.get('ref', '?')}")
        return FillStatement(target, text, clear=bool(params.get("clear", True)))

    if tool == SCREENSHOT:
        return ScreenshotStatement(str(params.get("filename") or default_screenshot))

    if tool == CLOSE:
        return CommentStatement("App closed")

    return TodoStatement(tool, _params_json(params))


def js_string(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )
    return f"'{escaped}'"


def _comment(text: str) -> str:
    return "// " + " ".join(text.splitlines())


class WebdriverIORenderer:
    framework = "webdriverio"

    def render(self, statement: Statement) -> str:
        if isinstance(statement, ClickStatement):
            return f"await browser.$({js_string(self.selector(statement.target))}).click();"
        if isinstance(statement, FillStatement):
            method = "setValue" if statement.clear else "addValue"
            return f"await browser.$({js_string(self.selector(statement.target))}).{method}({js_string(statement.text)});"
        if isinstance(statement, ScreenshotStatement):
            return f"await browser.saveScreenshot({js_string(statement.filename)});"
        return render_comment(statement)

    @staticmethod
    def selector(target: SelectorChoice) -> str:
        if target.strategy == "text" and target.text:
            return f"{target.tag}*={target.text}"
        return target.selector


class PlaywrightRenderer:
    framework = "playwright"

    def render(self, statement: Statement) -> str:
        if isinstance(statement, ClickStatement):
            return f"await window.click({js_string(statement.target.selector)});"
        if isinstance(statement, FillStatement):
            selector = js_string(statement.target.selector)
            if statement.clear:
                return f"await window.fill({selector}, {js_string(statement.text)});"
            return f"await window.locator({selector}).pressSequentially({js_string(statement.text)});"
        if isinstance(statement, ScreenshotStatement):
            return f"await window.screenshot({{ path: {js_string(statement.filename)} }});"
        return render_comment(statement)


def render_comment(statement: Statement) -> str:
    if isinstance(statement, TodoStatement):
        return _comment(f"TODO: {statement.tool} - {statement.params_json}")
    if isinstance(statement, CommentStatement):
        return _comment(statement.text)
    raise TypeError(f"Unhandled statement node: {statement!r}")


def _webdriverio_header(import_line: str, browser_decl: str) -> Callable[[str, str], list[str]]:
    def build(test_title: str, app_path: str) -> list[str]:
        return [
            import_line,
            "",
            "describe('Electron App Tests', () => {",
            f"    {browser_decl}",
            "",
            "    before(async () => {",
            "        browser = await remote({",
            "            capabilities: {",
            "                browserName: 'electron',",
            "                'wdio:electronServiceOptions': {",
            f"                    appBinaryPath: {js_string(app_path)}",
            "                }",
            "            }",
            "        });",
            "    });",
            "",
            "    after(async () => {",
            "        await browser.deleteSession();",
            "    });",
            "",
            f"    it({js_string(test_title)}, async () => {{",
        ]

    return build


def _playwright_header(import_lines: Sequence[str], app_decl: str, window_decl: str) -> Callable[[str, str], list[str]]:
    def build(test_title: str, app_path: str) -> list[str]:
        return [
            *import_lines,
            "",
            f"test({js_string(test_title)}, async () => {{",
            f"    {app_decl} = await electron.launch({{ executablePath: {js_string(app_path)} }});",
            f"    {window_decl} = await electronApp.firstWindow();",
            "",
            "    try {",
        ]

    return build


_WEBDRIVERIO_FOOTER = ("    });", "});")
_PLAYWRIGHT_FOOTER = ("    } finally {", "        await electronApp.close();", "    }", "});")


@dataclass(frozen=True, slots=True)
class TargetTemplate:
    key: str
    renderer: WebdriverIORenderer | PlaywrightRenderer
    header: Callable[[str, str], list[str]]
    footer: tuple[str, ...]


TARGET_TEMPLATES: dict[str, TargetTemplate] = {
    "webdriverio_js": TargetTemplate(
        key="webdriverio_js",
        renderer=WebdriverIORenderer(),
        header=_webdriverio_header("const { remote } = require('webdriverio');", "let browser;"),
        footer=_WEBDRIVERIO_FOOTER,
    ),
    "webdriverio_ts": TargetTemplate(
        key="webdriverio_ts",
        renderer=WebdriverIORenderer(),
        header=_webdriverio_header("import { remote, Browser } from 'webdriverio';", "let browser: Browser;"),
        footer=_WEBDRIVERIO_FOOTER,
    ),
    "playwright_js": TargetTemplate(
        key="playwright_js",
        renderer=PlaywrightRenderer(),
        header=_playwright_header(
            (
                "const { _electron: electron } = require('playwright');",
                "const { test, expect } = require('@playwright/test');",
            ),
            "const electronApp",
            "const window",
        ),
        footer=_PLAYWRIGHT_FOOTER,
    ),
    "playwright_ts": TargetTemplate(
        key="playwright_ts",
        renderer=PlaywrightRenderer(),
        header=_playwright_header(
            (
                "import { _electron as electron, ElectronApplication, Page } from 'playwright';",
                "import { test, expect } from '@playwright/test';",
            ),
            "const electronApp: ElectronApplication",
            "const window: Page",
        ),
        footer=_PLAYWRIGHT_FOOTER,
    ),
}

SUPPORTED_FORMATS: tuple[str, ...] = tuple(TARGET_TEMPLATES)


def synthesize_test(
    actions: Sequence[RecordedAction],
    target_format: str,
    test_name: str,
    app_path: str,
    *,
    text_limit: int = 30,
    default_screenshot: str = DEFAULT_SCREENSHOT_NAME,
) -> str:
    template = TARGET_TEMPLATES.get(target_format)
    if template is None:
        raise UnsupportedFormat(target_format, SUPPORTED_FORMATS)

    lines = template.header(test_name.replace("_", " "), app_path)
    for action in actions:
        statement = translate_action(action, text_limit=text_limit, default_screenshot=default_screenshot)
        lines.append(BODY_INDENT + template.renderer.render(statement))
    lines.extend(template.footer)

    logger.debug("Synthesized %s test from %s action(s)", target_format, len(actions))
    return "\n".join(lines) + "\n"
