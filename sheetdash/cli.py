"""Command-line access to the dashboards: list, summarize, export, toggle."""
import argparse
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path

from sheetdash.core.config import SheetSource, load_settings
from sheetdash.core.logging import configure_logging
from sheetdash.core.models import IncidentFilters, MessageFilters, TransferFilters
from sheetdash.export.sinks import export_conversation, records_to_rows, write_csv, write_excel
from sheetdash.processing.controller import DashboardController, build_dashboards


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI entry point."""

    parser = argparse.ArgumentParser(description="Query the spreadsheet-backed dashboards")
    parser.add_argument(
        "dashboard",
        choices=["transfers", "incidents", "messages"],
        help="Which dashboard to load",
    )
    parser.add_argument("--spreadsheet-id", help="Override the configured spreadsheet ID")
    parser.add_argument("--gid", help="Override the configured worksheet gid")
    parser.add_argument("--start", type=date.fromisoformat, help="First day to include (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, help="Last day to include (YYYY-MM-DD)")
    parser.add_argument("--client", default="", help="Client number or name contains")
    parser.add_argument("--order", default="", help="Order number contains")
    parser.add_argument("--source", default="", help="Exact source (case-insensitive)")
    parser.add_argument("--type", dest="incident_type", default="", help="Exact incident type")
    parser.add_argument("--status", default="", help="Exact incident status")
    parser.add_argument(
        "--search",
        default="",
        help="Incidents: client or order number; messages: phone or text",
    )
    parser.add_argument("--summary", action="store_true", help="Print incident counts instead of rows")
    parser.add_argument(
        "--toggle-status",
        type=int,
        metavar="ROW_INDEX",
        help="Toggle Abierta/Cerrada for the incident at this row index",
    )
    parser.add_argument("--export-phone", help="Export the conversation with this phone number")
    parser.add_argument(
        "--export-dir",
        type=Path,
        default=Path("output"),
        help="Directory for conversation transcripts",
    )
    parser.add_argument("--csv-output", type=Path, help="Write the filtered rows to a CSV file")
    parser.add_argument("--excel-output", type=Path, help="Write the filtered rows to an Excel file")
    return parser


def _filters_for(args: argparse.Namespace):
    if args.dashboard == "transfers":
        return TransferFilters(args.start, args.end, args.client, args.order, args.source)
    if args.dashboard == "incidents":
        return IncidentFilters(
            start_date=args.start,
            end_date=args.end,
            client_search=args.client,
            order_search=args.order,
            source_filter=args.source,
            incident_type_filter=args.incident_type,
            status_filter=args.status,
            search_term=args.search,
        )
    return MessageFilters(args.start, args.end, args.search)


def _select(args: argparse.Namespace) -> DashboardController:
    settings = load_settings()
    configured = settings.source_for(args.dashboard)
    source = SheetSource(
        spreadsheet_id=args.spreadsheet_id or configured.spreadsheet_id,
        sheet_gid=args.gid or configured.sheet_gid,
    )
    settings = replace(settings, **{args.dashboard: source})
    return getattr(build_dashboards(settings), args.dashboard)


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    raise SystemExit(1)


def main() -> None:
    """Entrypoint for running the dashboards from the command line."""

    configure_logging()
    args = build_parser().parse_args()
    dashboard = _select(args)
    dashboard.set_filters(_filters_for(args))
    dashboard.load()
    if dashboard.error:
        _fail(dashboard.error)

    if args.dashboard == "incidents" and args.toggle_status is not None:
        try:
            change = dashboard.toggle_status(args.toggle_status)
        except KeyError as exc:
            _fail(str(exc.args[0]))
        state = "kept" if change.applied else "rolled back"
        print(f"Row {change.row_index}: {change.previous_status} -> {change.new_status} ({state})")
        return

    if args.dashboard == "incidents" and args.summary:
        summary = dashboard.summary()
        print(f"Total: {summary.total}  Abiertas: {summary.open}  Cerradas: {summary.closed}")
        for label, count in summary.by_type:
            print(f"  {label}: {count}")
        return

    if args.dashboard == "messages":
        conversations = dashboard.conversations
        if args.export_phone:
            dashboard.select(args.export_phone)
            selected = dashboard.selected_conversation
            if selected is None:
                _fail(f"No conversation for {args.export_phone}")
            print(f"Wrote {export_conversation(selected, args.export_dir)}")
            return
        for convo in conversations:
            print(f"{convo.phone}\t{convo.message_count}\t{convo.last_message_date:%d/%m/%Y %H:%M}")
        return

    records = dashboard.records
    rows = records_to_rows(records)
    if args.csv_output:
        write_csv(rows, args.csv_output)
        print(f"Wrote {args.csv_output}")
    if args.excel_output:
        write_excel(rows, args.excel_output, sheet_title=args.dashboard)
        print(f"Wrote {args.excel_output}")
    if not (args.csv_output or args.excel_output):
        for record in records:
            date_value = getattr(record, "submission_date", None) or getattr(record, "incident_date", "")
            print(f"{record.row_index}\t{date_value}\t{record.client_number}\t{record.client_name}\t{record.order_number}")


if __name__ == "__main__":
    main()
