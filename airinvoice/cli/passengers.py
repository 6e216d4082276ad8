"""Passenger and invoice command handlers used by the unified CLI."""

import argparse
import sys
from decimal import Decimal

from airinvoice.application.passengers import (
    get_workflow,
    run_high_value_invoices,
    run_invoice_summary,
    run_list_passengers,
    run_progress,
)
from airinvoice.domain.errors import ParsePreconditionError, PassengerNotFoundError
from airinvoice.domain.passenger import InvoiceData, PassengerRecord
from airinvoice.runtime import get_logger

logger = get_logger(__name__)


def _format_amount(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def _print_record(record: PassengerRecord) -> None:
    print(f"ID:        {record.id}")
    print(f"Ticket:    {record.ticket_number}")
    print(f"Name:      {record.full_name}")
    print(f"Download:  {record.download_status}")
    print(f"Parse:     {record.parse_status}")
    if record.document_ref:
        source = f" ({record.document_source})" if record.document_source else ""
        print(f"Document:  {record.document_ref}{source}")
    if record.invoice_data is not None:
        invoice = record.invoice_data
        print(f"Invoice:   {invoice.invoice_number} {invoice.date.isoformat()} {invoice.airline}")
        print(f"Amount:    {_format_amount(invoice.amount)}")
        if invoice.gstin:
            print(f"GSTIN:     {invoice.gstin}")
    if record.error_message:
        print(f"Error:     {record.error_message}")


def _print_invoices(invoices: list[InvoiceData]) -> None:
    for invoice in invoices:
        print(
            f"  {invoice.date.isoformat()}  {invoice.invoice_number:<18} "
            f"{invoice.airline:<28} {_format_amount(invoice.amount):>14}"
        )


def cmd_list(args: argparse.Namespace) -> None:
    """List roster passengers with their download/parse status."""
    records = run_list_passengers()
    if not records:
        print("No passengers found. Add a roster at data/data.csv.")
        return
    print(f"{'ID':<10} {'Ticket':<16} {'Name':<30} {'Download':<10} {'Parse':<8}")
    for record in records:
        print(
            f"{record.id[:8]:<10} {record.ticket_number:<16} {record.full_name[:30]:<30} "
            f"{record.download_status:<10} {record.parse_status:<8}"
        )
    print(f"\n{len(records)} passenger(s)")


def _resolve_id(passenger_id: str) -> str:
    """Accept a full id or the unique 8-character prefix shown by `list`."""
    matches = [record.id for record in run_list_passengers() if record.id.startswith(passenger_id)]
    if len(matches) == 1:
        return matches[0]
    return passenger_id


def cmd_show(args: argparse.Namespace) -> None:
    try:
        record = get_workflow().get_by_id(_resolve_id(args.passenger_id))
    except PassengerNotFoundError as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    _print_record(record)


def cmd_download(args: argparse.Namespace) -> None:
    """Download the invoice document for one passenger."""
    try:
        record = get_workflow().download_invoice(_resolve_id(args.passenger_id))
    except PassengerNotFoundError as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    _print_record(record)
    if record.download_status != "success":
        sys.exit(1)


def cmd_parse(args: argparse.Namespace) -> None:
    """Extract invoice data from a downloaded document."""
    try:
        record = get_workflow().parse_invoice(_resolve_id(args.passenger_id))
    except (PassengerNotFoundError, ParsePreconditionError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    _print_record(record)
    if record.parse_status != "success":
        sys.exit(1)


def cmd_process(args: argparse.Namespace) -> None:
    """Download and parse invoices for the given passengers, or for everyone."""
    workflow = get_workflow()
    if args.passenger_ids:
        passenger_ids = [_resolve_id(passenger_id) for passenger_id in args.passenger_ids]
    else:
        passenger_ids = [record.id for record in workflow.get_all()]

    failures = 0
    for passenger_id in passenger_ids:
        try:
            record = workflow.process_passenger(passenger_id)
        except PassengerNotFoundError as exc:
            print(f"Error: {exc}")
            failures += 1
            continue
        status = f"download={record.download_status} parse={record.parse_status}"
        detail = f" ({record.error_message})" if record.error_message else ""
        print(f"{record.ticket_number:<16} {record.full_name[:30]:<30} {status}{detail}")
        if record.parse_status != "success":
            failures += 1

    progress = run_progress()
    print(
        f"\nDownloaded {progress.download_success}/{progress.total} "
        f"(failed {progress.download_failed}), parsed {progress.parse_success}/{progress.total} "
        f"(failed {progress.parse_failed})"
    )
    if failures:
        logger.info("%d passenger(s) did not reach a parsed invoice", failures)
        sys.exit(1)


def cmd_summary(args: argparse.Namespace) -> None:
    """Print invoice totals, per-airline breakdown and high-value invoices."""
    summary = run_invoice_summary(args.threshold)
    print(f"Total invoices: {summary.total_invoices}")
    print(f"Total amount:   {_format_amount(summary.total_amount)}")
    if summary.airline_totals:
        print("\nBy airline:")
        ranked = sorted(summary.airline_totals.items(), key=lambda item: item[1].amount, reverse=True)
        for airline, total in ranked:
            print(f"  {airline:<28} {total.count:>4}  {_format_amount(total.amount):>14}")
    print(f"\nHigh-value invoices: {len(summary.high_value_invoices)}")
    _print_invoices(summary.high_value_invoices)


def cmd_high_value(args: argparse.Namespace) -> None:
    result = run_high_value_invoices(args.threshold)
    print(f"Invoices above {_format_amount(result.threshold)}: {len(result.invoices)}")
    _print_invoices(result.invoices)


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the FastAPI server."""
    from airinvoice.runtime.invoice_server import create_app, run_server

    print(f"Starting invoice server on {args.host}:{args.port}")
    print(f"API: http://{args.host}:{args.port}/api/passengers")
    print("Press Ctrl+C to stop")

    run_server(create_app(get_workflow), host=args.host, port=args.port)
