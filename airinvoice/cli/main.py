#!/usr/bin/env python3

import argparse
import logging
from collections.abc import Callable, Sequence

from airinvoice.runtime.logging import set_log_level
from airinvoice.runtime.paths import set_project_root


def _coerce_exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    return 1


def _run_command(command: Callable[[argparse.Namespace], None], args: argparse.Namespace) -> int:
    """
    Normalize command handlers that call sys.exit().

    This keeps process termination centralized in this module's entrypoint.
    """
    try:
        command(args)
    except SystemExit as exc:
        return _coerce_exit_code(exc.code)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="airinvoice",
        description="Airline passenger invoice tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  list                       List passengers and their invoice status
  show <id>                  Show one passenger (full id or 8-char prefix)
  download <id>              Fetch the invoice document from the airline portal
  parse <id>                 Extract invoice data from the downloaded document
  process [id ...]           Download then parse (all passengers if none given)
  summary [--threshold]      Totals, per-airline breakdown, high-value invoices
  high-value [--threshold]   Invoices above the threshold
  serve [--host] [--port]    Start the HTTP API server

Files (relative to --home, $AIRINVOICE_HOME or the current directory):
  data/data.csv          = roster (Ticket Number,First Name,Last Name)
  data/passengers.json   = persisted passenger state
  uploads/               = downloaded invoice documents
""",
    )
    parser.add_argument("--home", default=None, help="Project directory (default: $AIRINVOICE_HOME or cwd)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("list", help="List passengers")

    for name, help_text in (
        ("show", "Show one passenger"),
        ("download", "Download a passenger's invoice"),
        ("parse", "Parse a passenger's downloaded invoice"),
    ):
        command_parser = subparsers.add_parser(name, help=help_text)
        command_parser.add_argument("passenger_id", help="Passenger id (or unique prefix)")

    process_parser = subparsers.add_parser("process", help="Download and parse invoices")
    process_parser.add_argument("passenger_ids", nargs="*", help="Passenger ids (default: all)")

    summary_parser = subparsers.add_parser("summary", help="Show invoice summary")
    summary_parser.add_argument("--threshold", default=None, help="High-value threshold (default: 30000)")

    high_value_parser = subparsers.add_parser("high-value", help="List high-value invoices")
    high_value_parser.add_argument("--threshold", default=None, help="High-value threshold (default: 30000)")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=3001, help="Port to bind to (default: 3001)")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.verbose:
        set_log_level(logging.DEBUG)
    if args.home is not None:
        set_project_root(args.home)

    from airinvoice.cli import passengers

    commands: dict[str, Callable[[argparse.Namespace], None]] = {
        "list": passengers.cmd_list,
        "show": passengers.cmd_show,
        "download": passengers.cmd_download,
        "parse": passengers.cmd_parse,
        "process": passengers.cmd_process,
        "summary": passengers.cmd_summary,
        "high-value": passengers.cmd_high_value,
        "serve": passengers.cmd_serve,
    }
    command = commands.get(args.command)
    if command is None:
        return 1
    return _run_command(command, args)


if __name__ == "__main__":
    raise SystemExit(main())
