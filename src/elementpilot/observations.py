from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Any, Iterable

from .models import ConsoleLogEntry, MockResponse, NetworkEntry

CONSOLE_LEVELS: tuple[str, ...] = ("log", "info", "warn", "error", "debug")

CONSOLE_INTERCEPTOR_SCRIPT = """
var originalConsole = window.__originalConsole || Object.assign({}, console);
window.__originalConsole = originalConsole;
var capturedLogs = [];
window.__capturedLogs = capturedLogs;
['log', 'info', 'warn', 'error', 'debug'].forEach(function(lvl) {
  console[lvl] = function() {
    var args = Array.prototype.slice.call(arguments);
    capturedLogs.push({
      level: lvl,
      message: args.map(function(a) { return typeof a === 'object' ? JSON.stringify(a) : String(a); }).join(' '),
      timestamp: Date.now()
    });
    originalConsole[lvl].apply(console, args);
  };
});
return true;
"""

CONSOLE_COLLECT_SCRIPT = """
var logs = window.__capturedLogs || [];
if (window.__originalConsole) {
  Object.assign(console, window.__originalConsole);
}
return logs.splice(0, logs.length);
"""

PERFORMANCE_KINDS: tuple[str, ...] = ("get", "timing", "memory")

PERFORMANCE_SCRIPTS: dict[str, str] = {
    "get": """
var perf = window.performance;
var navEntries = perf.getEntriesByType('navigation');
var nav = navEntries.length > 0 ? navEntries[0] : null;
var paints = perf.getEntriesByType('paint');
var firstPaint = paints.find(function(e) { return e.name === 'first-paint'; });
var fcp = paints.find(function(e) { return e.name === 'first-contentful-paint'; });
return {
  timestamp: Date.now(),
  timing: nav ? {
    domContentLoaded: nav.domContentLoadedEventEnd - nav.startTime,
    loadComplete: nav.loadEventEnd - nav.startTime,
    firstPaint: firstPaint ? firstPaint.startTime : null,
    firstContentfulPaint: fcp ? fcp.startTime : null
  } : null,
  resources: perf.getEntriesByType('resource').length
};
""",
    "timing": """
var navEntries = window.performance.getEntriesByType('navigation');
var nav = navEntries.length > 0 ? navEntries[0] : null;
if (!nav) return null;
return {
  startTime: nav.startTime,
  redirectTime: nav.redirectEnd - nav.redirectStart,
  dnsTime: nav.domainLookupEnd - nav.domainLookupStart,
  connectTime: nav.connectEnd - nav.connectStart,
  requestTime: nav.responseStart - nav.requestStart,
  responseTime: nav.responseEnd - nav.responseStart,
  domInteractive: nav.domInteractive - nav.startTime,
  domContentLoaded: nav.domContentLoadedEventEnd - nav.startTime,
  loadComplete: nav.loadEventEnd - nav.startTime
};
""",
    "memory": """
var memory = window.performance.memory;
if (!memory) return null;
return {
  usedJSHeapSize: memory.usedJSHeapSize,
  totalJSHeapSize: memory.totalJSHeapSize,
  jsHeapSizeLimit: memory.jsHeapSizeLimit
};
""",
}


def console_entry_from_payload(raw: Any) -> ConsoleLogEntry | None:
    if not isinstance(raw, dict):
        return None
    level = str(raw.get("level") or "log").lower()
    timestamp = raw.get("timestamp")
    # Page timestamps come from Date.now() in milliseconds.
    seconds = float(timestamp) / 1000.0 if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool) else 0.0
    return ConsoleLogEntry(level=level, message=str(raw.get("message", "")), timestamp=seconds, source=raw.get("source"))


class ConsoleBuffer:
    def __init__(self) -> None:
        self._entries: list[ConsoleLogEntry] = []

    def add(self, entry: ConsoleLogEntry) -> None:
        self._entries.append(entry)

    def extend_from_payload(self, payload: Iterable[Any]) -> int:
        added = 0
        for raw in payload:
            entry = console_entry_from_payload(raw)
            if entry is None:
                continue
            self._entries.append(entry)
            added += 1
        return added

    def get(self, level: str | None = None) -> list[ConsoleLogEntry]:
        if level:
            return [entry for entry in self._entries if entry.level == level]
        return list(self._entries)

    def clear(self) -> None:
        self._entries = []


class NetworkBuffer:
    def __init__(self) -> None:
        self._entries: list[NetworkEntry] = []
        self._counter = 0

    def add(self, entry: NetworkEntry) -> None:
        self._counter += 1
        if not entry.request_id:
            entry.request_id = f"req{self._counter}"
        self._entries.append(entry)

    def get(self, url: str | re.Pattern[str] | None = None, method: str | None = None) -> list[NetworkEntry]:
        entries = list(self._entries)
        if url:
            if isinstance(url, str):
                entries = [entry for entry in entries if url in entry.url]
            else:
                entries = [entry for entry in entries if url.search(entry.url)]
        if method:
            entries = [entry for entry in entries if entry.method == method]
        return entries

    def clear(self) -> None:
        self._entries = []


class MockRegistry:
    """Stored mock definitions. Nothing here intercepts live traffic."""

    def __init__(self) -> None:
        self._mocks: list[MockResponse] = []

    def add(self, mock: MockResponse) -> None:
        self._mocks.append(mock)

    def get(self) -> list[MockResponse]:
        return list(self._mocks)

    def clear(self) -> None:
        self._mocks = []


def format_console_logs(entries: Iterable[ConsoleLogEntry]) -> str:
    lines = []
    for entry in entries:
        stamp = datetime.fromtimestamp(entry.timestamp, tz=timezone.utc).isoformat(timespec="milliseconds")
        lines.append(f"[{stamp}] [{entry.level.upper()}] {entry.message}")
    return "\n".join(lines)


def format_network_entries(entries: Iterable[NetworkEntry]) -> str:
    lines = []
    for entry in entries:
        status = entry.status if entry.status is not None else "pending"
        elapsed = entry.response_time_ms if entry.response_time_ms is not None else 0
        lines.append(f"{entry.method} {entry.url} -> {status} ({elapsed}ms)")
    return "\n".join(lines)


def _ms(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:.2f}ms"
    return "n/a"


def _megabytes(value: Any) -> str:
    size = float(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else 0.0
    return f"{size / (1024 * 1024):.2f} MB"


_TIMING_ROWS: tuple[tuple[str, str], ...] = (
    ("Redirect", "redirectTime"),
    ("DNS Lookup", "dnsTime"),
    ("Connection", "connectTime"),
    ("Request", "requestTime"),
    ("Response", "responseTime"),
    ("DOM Interactive", "domInteractive"),
    ("DOM Content Loaded", "domContentLoaded"),
    ("Load Complete", "loadComplete"),
)


def format_performance_metrics(kind: str, payload: dict[str, Any] | None) -> str:
    """Render a PERFORMANCE_SCRIPTS result as indented text.

    ``payload`` is ``None`` when the page has no navigation entry or no memory API.
    """
    if kind == "timing":
        if not payload:
            return "Navigation timing not available"
        return "\n".join(["Navigation Timing:", *(f"  {label}: {_ms(payload.get(key))}" for label, key in _TIMING_ROWS)])

    if kind == "memory":
        if not payload:
            return "Memory info not available"
        used = payload.get("usedJSHeapSize") or 0
        total = payload.get("totalJSHeapSize") or 0
        usage = (used / total) * 100 if total else 0.0
        return "\n".join(
            [
                "Memory Usage:",
                f"  Used JS Heap: {_megabytes(used)}",
                f"  Total JS Heap: {_megabytes(total)}",
                f"  JS Heap Limit: {_megabytes(payload.get('jsHeapSizeLimit'))}",
                f"  Heap Usage: {usage:.1f}%",
            ]
        )

    if kind != "get":
        raise ValueError(f"Unknown performance kind: {kind}. Expected one of: {', '.join(PERFORMANCE_KINDS)}")
    if not payload:
        return "Performance metrics not available"
    timestamp = payload.get("timestamp")
    seconds = float(timestamp) / 1000.0 if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool) else 0.0
    stamp = datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat(timespec="milliseconds")
    lines = ["Performance Metrics:", f"  Timestamp: {stamp}", f"  Resources loaded: {payload.get('resources', 0)}"]
    timing = payload.get("timing")
    if isinstance(timing, dict):
        lines.append(f"  DOM Content Loaded: {_ms(timing.get('domContentLoaded'))}")
        lines.append(f"  Load Complete: {_ms(timing.get('loadComplete'))}")
        if timing.get("firstPaint"):
            lines.append(f"  First Paint: {_ms(timing['firstPaint'])}")
        if timing.get("firstContentfulPaint"):
            lines.append(f"  First Contentful Paint: {_ms(timing['firstContentfulPaint'])}")
    return "\n".join(lines)
