from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Sequence

import yaml
from rich.console import Console
from rich.table import Table

from flatcompose._logging import setup_logging
from flatcompose.linearise import linearise_file, linearise_with_diagnostics
from flatcompose.models import ConfigError, FileAccessError, ParseError
from flatcompose.settings import LineariseSettings, load_settings
from flatcompose.utils import atomic_write_text

_cli_log = logging.getLogger("flatcompose.cli")


def _console() -> Console:
    return Console(highlight=False)


def _resolve_settings(args: argparse.Namespace) -> LineariseSettings:
    _, settings = load_settings(
        args.settings, required=args.settings is not None
    )
    if args.no_trim:
        return LineariseSettings(trim=())
    if args.trim:
        return LineariseSettings(trim=tuple(chars for chars in args.trim if chars))
    return settings


def _run_linearise(args: argparse.Namespace) -> tuple[str, dict[str, Any]]:
    settings = _resolve_settings(args)
    if args.file == "-":
        return linearise_with_diagnostics(
            sys.stdin.read(), args.base_dir or "", settings=settings
        )
    return linearise_file(args.file, settings=settings, base_dir=args.base_dir)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flatcompose",
        description="Resolve 'extends' in compose service definitions",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $FLATCOMPOSE_LOG_LEVEL or WARNING)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def _add_document_args(target: argparse.ArgumentParser) -> None:
        target.add_argument("file", help="Compose YAML file ('-' reads stdin)")
        target.add_argument(
            "--base-dir",
            default=None,
            help="Directory for relative extends.file paths "
            "(default: the document's directory, or cwd for stdin)",
        )
        target.add_argument(
            "--settings",
            default=None,
            help="Settings YAML path (default: ./flatcompose.yaml)",
        )
        trim_group = target.add_mutually_exclusive_group()
        trim_group.add_argument(
            "--trim",
            action="append",
            default=None,
            help="Character set stripped from both ends of the output (repeatable)",
        )
        trim_group.add_argument(
            "--no-trim", action="store_true", help="Do not trim the output"
        )

    lin = sub.add_parser(
        "linearise",
        aliases=["linearize"],
        help="Write the document with every extends inlined",
    )
    _add_document_args(lin)
    lin.add_argument("--format", choices=["yaml", "json"], default="yaml")
    lin.add_argument(
        "--out",
        default=None,
        help="Optional file path for the output (prints to stdout when omitted)",
    )
    lin.add_argument(
        "--show-diagnostics",
        action="store_true",
        help="Print resolution diagnostics to stderr",
    )
    lin.set_defaults(handler=_cmd_linearise)

    inspect = sub.add_parser(
        "inspect", help="Show how every extends reference was resolved"
    )
    _add_document_args(inspect)
    inspect.add_argument("--format", choices=["table", "json"], default="table")
    inspect.set_defaults(handler=_cmd_inspect)
    return parser


def _cmd_linearise(args: argparse.Namespace) -> int:
    text, diagnostics = _run_linearise(args)
    if args.format == "json":
        try:
            payload = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ParseError(f"Resolved document cannot be rendered as JSON: {exc}") from exc
        text = json.dumps(payload, indent=2, default=str)
    if not text.endswith("\n"):
        text += "\n"

    for warning in diagnostics["warnings"]:
        print(f"[warning] {warning}", file=sys.stderr)
    if args.show_diagnostics:
        print(json.dumps(diagnostics, indent=2, sort_keys=True), file=sys.stderr)

    if args.out:
        output_path = Path(args.out).expanduser().resolve()
        atomic_write_text(output_path, text)
        print(json.dumps({"output_path": str(output_path)}, indent=2, sort_keys=True))
    else:
        print(text, end="")
    return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
    _, diagnostics = _run_linearise(args)
    if args.format == "json":
        print(json.dumps(diagnostics, indent=2, sort_keys=True))
        return 0

    console = _console()
    overview = Table(title="Document", show_header=False)
    overview.add_column("Field", style="bold cyan")
    overview.add_column("Value")
    overview.add_row("Shape", str(diagnostics.get("shape", "")))
    overview.add_row("Services", ", ".join(diagnostics.get("services", [])) or "-")
    overview.add_row("Files Read", str(len(diagnostics["files"])))
    overview.add_row("Dangling", str(len(diagnostics["dangling_references"])))
    console.print(overview)

    edges = Table(title="Extends")
    edges.add_column("Service", style="bold")
    edges.add_column("Target")
    edges.add_column("File")
    edges.add_column("Defined In")
    edges.add_column("Resolved")
    for edge in diagnostics["extends"]:
        edges.add_row(
            str(edge["service"]),
            str(edge["target"] or "-"),
            str(edge["file"] or "-"),
            str(edge["source"] or "<stdin>"),
            "yes" if edge["resolved"] else "[red]no[/red]",
        )
    console.print(edges)
    for warning in diagnostics["warnings"]:
        console.print(f"[yellow]warning:[/yellow] {warning}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    args = parser.parse_args(raw_argv)
    setup_logging(level=args.log_level)
    command = str(getattr(args, "command", "unknown"))
    started = time.perf_counter()
    _cli_log.info("cli_command_start command=%s argv=%s", command, " ".join(raw_argv))

    exit_code = 1
    try:
        exit_code = int(args.handler(args))
    except ParseError as exc:
        _cli_log.error("cli_command_error command=%s kind=parse error=%s", command, exc)
        print(f"[parse error] {exc}", file=sys.stderr)
        exit_code = 2
    except FileAccessError as exc:
        _cli_log.error("cli_command_error command=%s kind=file error=%s", command, exc)
        print(f"[file error] {exc}", file=sys.stderr)
        exit_code = 2
    except ConfigError as exc:
        _cli_log.error(
            "cli_command_error command=%s kind=config error=%s", command, exc
        )
        print(f"[config error] {exc}", file=sys.stderr)
        exit_code = 2
    except KeyboardInterrupt:
        _cli_log.error("cli_command_error command=%s kind=interrupted", command)
        print("\n[interrupted]", file=sys.stderr)
        exit_code = 130
    except RuntimeError as exc:
        _cli_log.error(
            "cli_command_error command=%s kind=runtime error=%s", command, exc
        )
        print(f"[runtime error] {exc}", file=sys.stderr)
        exit_code = 1
    except (OSError, ValueError) as exc:
        _cli_log.error(
            "cli_command_error command=%s kind=%s error=%s",
            command,
            type(exc).__name__,
            exc,
        )
        print(f"[error] {type(exc).__name__}: {exc}", file=sys.stderr)
        exit_code = 1
    finally:
        _cli_log.info(
            "cli_command_end command=%s exit_code=%s duration_sec=%.3f",
            command,
            exit_code,
            time.perf_counter() - started,
        )

    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
