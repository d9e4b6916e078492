from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Sequence

from .action_catalog import filter_action_specs
from .action_log import format_action_log, load_action_log, write_generated_test
from .config import load_config
from .errors import ElementPilotError
from .models import RecordedAction
from .synthesizer import SUPPORTED_FORMATS, synthesize_test


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="elementpilot", description="Desktop UI automation helpers.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output to stderr.")
    parser.add_argument("--config", type=Path, default=None, help="Path to a JSON config file.")
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Generate test source from a saved action log.")
    generate.add_argument("--log", type=Path, required=True, help="JSON action log written by dump_action_log.")
    generate.add_argument("--format", dest="target_format", choices=SUPPORTED_FORMATS, required=True)
    generate.add_argument("--name", default=None, help="Test name.")
    generate.add_argument("--app-path", default=None, help="Application binary path used by the generated test.")
    generate.add_argument("--output", type=Path, default=None, help="Write to this file instead of stdout.")
    generate.add_argument("--overwrite", action="store_true", help="Replace an existing output file.")

    snapshot = commands.add_parser("snapshot", help="Launch an app and print its interactive elements.")
    snapshot.add_argument("--binary", required=True, help="Application binary.")
    snapshot.add_argument("--arg", dest="args", action="append", default=[], help="Extra argument for the app.")
    snapshot.add_argument("--port", type=int, default=9222, help="Remote debugging port.")

    summary = commands.add_parser("summary", help="Print a numbered summary of a saved action log.")
    summary.add_argument("--log", type=Path, required=True, help="JSON action log written by dump_action_log.")

    commands.add_parser("formats", help="List supported target formats.")

    actions = commands.add_parser("actions", help="List recordable actions.")
    actions.add_argument("--search", default="", help="Filter by text.")
    actions.add_argument("--category", default="All", help="Filter by category.")
    return parser


def _read_action_log(path: Path) -> list[RecordedAction] | None:
    try:
        log_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Could not read action log: {exc}", file=sys.stderr)
        return None
    try:
        return load_action_log(log_text)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return None


def _run_generate(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    actions = _read_action_log(args.log)
    if actions is None:
        return 1

    source = synthesize_test(
        actions,
        args.target_format,
        args.name or config.default_test_name,
        args.app_path or config.default_app_path,
        text_limit=config.resolver_text_limit,
        default_screenshot=config.default_screenshot_name,
    )
    if args.output is None:
        sys.stdout.write(source)
        return 0

    ok, message = write_generated_test(args.output, source, overwrite=args.overwrite)
    print(message, file=sys.stdout if ok else sys.stderr)
    return 0 if ok else 1


def _run_snapshot(args: argparse.Namespace) -> int:
    from .launcher import AppLaunchConfig
    from .session import AutomationSession

    session = AutomationSession(load_config(args.config))
    try:
        session.launch(AppLaunchConfig(binary_path=args.binary, args=list(args.args), debugging_port=args.port))
        session.capture_snapshot()
        print(session.format_snapshot_as_text())
    finally:
        if session.is_connected:
            session.close()
    return 0


def _run_summary(args: argparse.Namespace) -> int:
    actions = _read_action_log(args.log)
    if actions is None:
        return 1
    if not actions:
        print("No actions recorded")
        return 0
    print(f"{len(actions)} actions recorded:")
    print(format_action_log(actions))
    return 0


def _run_formats(_args: argparse.Namespace) -> int:
    for name in SUPPORTED_FORMATS:
        print(name)
    return 0


def _run_actions(args: argparse.Namespace) -> int:
    for spec in filter_action_specs(args.search, args.category):
        marker = "*" if spec.synthesized else " "
        params = ", ".join(spec.parameter_keys) or "-"
        target = " [element]" if spec.uses_element else ""
        print(f"{marker} {spec.key:<24} {spec.category:<8} {params}{target}")
    return 0


_COMMANDS = {
    "generate": _run_generate,
    "snapshot": _run_snapshot,
    "summary": _run_summary,
    "formats": _run_formats,
    "actions": _run_actions,
}


def main(argv: Sequence[str] | None = None) -> int:
    if sys.version_info < (3, 11):
        raise SystemExit(
            "elementpilot requires Python 3.11+. "
            f"Current interpreter: {sys.executable} (Python {sys.version.split()[0]})"
        )
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        return _COMMANDS[args.command](args)
    except ElementPilotError as exc:
        print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
