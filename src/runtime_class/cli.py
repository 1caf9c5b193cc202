"""Command-line entrypoint and JSON-line change listener."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TextIO

from runtime_class.config import ARTIFACT_SHAPES, CliOverrides, load_effective_config
from runtime_class.expand import expand
from runtime_class.extract import MalformedLiteralError, parse
from runtime_class.sync import CHANGE_KINDS, ConfigurationError, PersistError, SyncSession

EXIT_OK = 0
EXIT_PERSIST_FAILED = 1
EXIT_CONFIG_ERROR = 2


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for the runtime-class command."""
    parser = argparse.ArgumentParser(prog="runtime-class")
    parser.add_argument("--project-root", required=False, default=".")
    parser.add_argument("--output", required=False, default=None)
    parser.add_argument("--workers", type=int, required=False, default=None)
    parser.add_argument("--artifact-shape", choices=ARTIFACT_SHAPES, required=False, default=None)
    parser.add_argument("--no-events", action="store_true", default=False)
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("scan", help="Scan the project and write the artifact.")

    update = subparsers.add_parser("update", help="Apply change notifications after a scan.")
    update.add_argument("paths", nargs="+")
    update.add_argument("--kind", choices=CHANGE_KINDS, default="change")

    expand_parser = subparsers.add_parser("expand", help="Expand one object literal.")
    expand_parser.add_argument("literal")

    subparsers.add_parser("listen", help="Scan, then read JSON-line notifications from stdin.")
    return parser


class ChangeListener:
    """Applies JSON-line change notifications to a session."""

    def __init__(self, session: SyncSession) -> None:
        self._session = session
        self._fallback_counter = 0

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Process JSON-line notifications and write JSON-line results."""
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = self.handle_json_line(line)
            out_stream.write(f"{json.dumps(response, sort_keys=True)}\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        """Handle a single JSON-line notification."""
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            return self.error_response(
                request_id=self.next_request_id(),
                code="INVALID_JSON",
                message="Notification must be valid JSON.",
            )
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Validate and apply a parsed notification."""
        if not isinstance(payload, dict):
            return self.error_response(
                request_id=self.next_request_id(),
                code="INVALID_NOTIFICATION",
                message="Notification must be a JSON object.",
            )
        raw_id = payload.get("id")
        request_id = raw_id if isinstance(raw_id, str) and raw_id else self.next_request_id()
        path = payload.get("path")
        kind = payload.get("kind", "change")
        if not isinstance(path, str) or not path:
            return self.error_response(
                request_id=request_id,
                code="INVALID_NOTIFICATION",
                message="Field 'path' must be a non-empty string.",
            )
        if kind not in CHANGE_KINDS:
            return self.error_response(
                request_id=request_id,
                code="INVALID_NOTIFICATION",
                message=f"Field 'kind' must be one of {', '.join(CHANGE_KINDS)}.",
            )
        try:
            result = self._session.update(path, kind=str(kind))
        except PersistError as exc:
            return self.error_response(
                request_id=request_id,
                code="PERSIST_FAILED",
                message=exc.reason,
                hint=exc.hint,
            )
        return {"request_id": request_id, "ok": True, "result": result.to_dict()}

    def next_request_id(self) -> str:
        """Return a deterministic id for notifications that carry none."""
        self._fallback_counter += 1
        return f"notification-{self._fallback_counter}"

    @staticmethod
    def error_response(
        request_id: str,
        code: str,
        message: str,
        hint: str | None = None,
    ) -> dict[str, object]:
        """Build a structured error response."""
        error: dict[str, object] = {"code": code, "message": message}
        if hint is not None:
            error["hint"] = hint
        return {"request_id": request_id, "ok": False, "error": error}


def create_session(
    project_root: str | Path = ".",
    cli_overrides: CliOverrides | None = None,
) -> SyncSession:
    """Create a session with config resolved from defaults, project file and overrides."""
    config = load_effective_config(project_root=Path(project_root), overrides=cli_overrides)
    return SyncSession(config=config)


def main(argv: list[str] | None = None, stdin: TextIO | None = None) -> int:
    """Entrypoint for the runtime-class command."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    out_stream = sys.stdout
    in_stream = stdin or sys.stdin

    if args.command == "expand":
        try:
            mapping = parse(args.literal)
        except MalformedLiteralError as exc:
            print(f"runtime-class: malformed literal: {exc.reason}", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        out_stream.write(f"{json.dumps(expand(mapping).to_dict())}\n")
        return EXIT_OK

    overrides = CliOverrides(
        output_path=Path(args.output) if args.output is not None else None,
        scan_workers=args.workers,
        artifact_shape=args.artifact_shape,
        logging_enabled=False if args.no_events else None,
    )
    try:
        session = create_session(project_root=args.project_root, cli_overrides=overrides)
    except ValueError as exc:
        print(f"runtime-class: invalid configuration: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    with session:
        try:
            scan_result = session.scan()
            if args.command == "scan":
                out_stream.write(f"{json.dumps(scan_result.to_dict(), sort_keys=True)}\n")
            elif args.command == "update":
                for path in args.paths:
                    result = session.update(path, kind=args.kind)
                    out_stream.write(f"{json.dumps(result.to_dict(), sort_keys=True)}\n")
            else:
                ChangeListener(session).serve(in_stream=in_stream, out_stream=out_stream)
        except ConfigurationError as exc:
            print(f"runtime-class: {exc}", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        except PersistError as exc:
            print(f"runtime-class: {exc.reason} ({exc.hint})", file=sys.stderr)
            return EXIT_PERSIST_FAILED
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
