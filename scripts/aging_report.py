#!/usr/bin/env python3
"""
Print the receivables (or payables) aging report for an invoice export.

Reads the file through aging_ingestion, ages every open invoice against the
as-of date with the active aging configuration, and prints one row per
counterparty (largest outstanding total first) plus bucket totals.

Usage:
    python3 scripts/aging_report.py --file <path> [options]

Examples:
    # Receivables aging as of today
    python3 scripts/aging_report.py --file invoices.csv

    # Payables aging on a Jalali date, as JSON
    python3 scripts/aging_report.py --file bills.jsonl --kind ap --as-of 1403/07/15 --format json

    # Expand two customers to list their outstanding invoices
    python3 scripts/aging_report.py --file invoices.xlsx --expand C-100 C-204

    # Probe the source file (row count, columns, sample) without aging
    python3 scripts/aging_report.py --file invoices.csv --probe-only
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Sequence
from uuid import uuid4

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aging_config import get_active_config  # noqa: E402
from aging_engines.aging import AgingReport, DrillDownLine  # noqa: E402
from aging_ingestion import KINDS, load_invoices, probe_source  # noqa: E402
from aging_kernel.domain.calendar import normalize_as_of, to_jalali_string  # noqa: E402
from aging_kernel.domain.currency import CurrencyRegistry  # noqa: E402
from aging_kernel.exceptions import AgingError  # noqa: E402
from aging_kernel.logging_config import LogContext, configure_logging  # noqa: E402
from aging_modules.payables import PayablesAgingService  # noqa: E402
from aging_modules.receivables import ReceivablesAgingService  # noqa: E402
from aging_modules.view_state import DrillDownState  # noqa: E402

_ID_KEYS = {
    "ar": ("customer_id", "customer_name"),
    "ap": ("supplier_id", "supplier_name"),
}


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Aging report: outstanding balances per counterparty in overdue buckets.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--file",
        required=True,
        type=Path,
        help="Invoice export (.csv, .json, .jsonl or .xlsx).",
    )
    parser.add_argument(
        "--kind",
        choices=KINDS,
        default="ar",
        help="ar = customer invoices (default), ap = supplier invoices.",
    )
    parser.add_argument(
        "--as-of",
        default=None,
        help="Report date, Jalali (1403/07/15) or Gregorian (2024-10-06). Default: today.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Aging configuration YAML. Default: aging_config/defaults/aging.yaml.",
    )
    parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format (default: table).",
    )
    parser.add_argument(
        "--expand",
        nargs="*",
        default=[],
        metavar="ID",
        help="Counterparty ids whose outstanding invoices are listed under their row.",
    )
    parser.add_argument(
        "--delimiter",
        default=None,
        help="CSV delimiter (default: comma).",
    )
    parser.add_argument(
        "--json-path",
        default=None,
        help="Dot path to the invoice array inside a JSON document (e.g. data.invoices).",
    )
    parser.add_argument(
        "--sheet",
        default=None,
        help="XLSX sheet name or 0-based index (default: active sheet).",
    )
    parser.add_argument(
        "--probe-only",
        action="store_true",
        help="Print row count, columns and sample rows of the file and exit.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level on stderr.",
    )
    parser.add_argument(
        "--log-format",
        choices=("json", "text"),
        default="json",
        help="Log line format on stderr (default: json).",
    )
    return parser.parse_args(argv)


def _source_options(args: argparse.Namespace) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if args.delimiter:
        options["delimiter"] = args.delimiter
    if args.json_path:
        options["json_path"] = args.json_path
    if args.sheet is not None:
        options["sheet"] = int(args.sheet) if args.sheet.isdigit() else args.sheet
    return options


def render_table(
    report: AgingReport,
    details: dict[str, tuple[DrillDownLine, ...]],
) -> str:
    """Fixed-width text table; expanded rows are followed by their invoices."""

    def fmt(amount: Decimal) -> str:
        return CurrencyRegistry.format_amount(amount, report.currency)

    headers = ["id", "name"] + [b.name for b in report.buckets] + ["total"]
    body: list[list[str]] = []
    for row in report.rows:
        body.append(
            [row.counterparty_id, row.counterparty_name]
            + [fmt(row.amount_in(b.name).amount) for b in report.buckets]
            + [fmt(row.total.amount)]
        )
    totals = report.bucket_totals()
    footer = (
        ["", "TOTAL"]
        + [fmt(totals[b.name].amount) for b in report.buckets]
        + [fmt(report.grand_total().amount)]
    )

    widths = [len(h) for h in headers]
    for cells in body + [footer]:
        widths = [max(w, len(c)) for w, c in zip(widths, cells)]

    def line(cells: list[str]) -> str:
        text = [cells[0].ljust(widths[0]), cells[1].ljust(widths[1])]
        text += [c.rjust(w) for c, w in zip(cells[2:], widths[2:])]
        return "  ".join(text).rstrip()

    out = [
        f"Aging report ({report.report_type}) as of "
        f"{to_jalali_string(report.as_of_date)} ({report.as_of_date.isoformat()}), "
        f"currency {report.currency}",
        line(headers),
        "  ".join("-" * w for w in widths),
    ]
    for row, cells in zip(report.rows, body):
        out.append(line(cells))
        for d in details.get(row.counterparty_id, ()):
            due = to_jalali_string(d.due_date) if d.due_date else "-"
            ref = d.reference or d.document_id
            out.append(
                f"    {ref}  due {due}  {d.days_overdue:>4}d  "
                f"{d.bucket_name:<8} {fmt(d.remaining.amount)}"
            )
    out.append("  ".join("-" * w for w in widths))
    out.append(line(footer))
    return "\n".join(out)


def render_json(
    report: AgingReport,
    details: dict[str, tuple[DrillDownLine, ...]],
    kind: str,
) -> str:
    id_key, name_key = _ID_KEYS[kind]
    payload = {
        "report_type": report.report_type,
        "as_of_date": report.as_of_date.isoformat(),
        "as_of_jalali": to_jalali_string(report.as_of_date),
        "currency": report.currency,
        "buckets": [b.name for b in report.buckets],
        "rows": [row.to_dict(id_key=id_key, name_key=name_key) for row in report.rows],
        "bucket_totals": {name: m.amount for name, m in report.bucket_totals().items()},
        "grand_total": report.grand_total().amount,
        "drill_down": {
            counterparty_id: [
                {
                    "document_id": d.document_id,
                    "reference": d.reference,
                    "due_date": d.due_date.isoformat() if d.due_date else None,
                    "due_date_jalali": to_jalali_string(d.due_date) if d.due_date else None,
                    "days_overdue": d.days_overdue,
                    "bucket": d.bucket_name,
                    "remaining": d.remaining.amount,
                }
                for d in lines
            ]
            for counterparty_id, lines in details.items()
        },
    }
    return json.dumps(payload, ensure_ascii=False, indent=2, default=str)


def _probe(args: argparse.Namespace) -> int:
    probe = probe_source(args.file, _source_options(args))
    print(f"Rows: {probe.row_count}")
    print(f"Columns: {list(probe.columns)}")
    print("Sample (first 3):")
    for i, row in enumerate(probe.sample_rows[:3], 1):
        print(f"  {i}: {row}")
    return 0


def _run(args: argparse.Namespace) -> int:
    as_of: date | None = None
    if args.as_of:
        try:
            as_of = normalize_as_of(args.as_of)
        except TypeError:
            print(f"ERROR: Unreadable --as-of date: {args.as_of!r}", file=sys.stderr)
            return 2

    config = get_active_config(args.config)
    invoices = load_invoices(args.file, args.kind, _source_options(args))
    service = (
        ReceivablesAgingService(config=config)
        if args.kind == "ar"
        else PayablesAgingService(config=config)
    )
    report = service.report(invoices, as_of)

    state = DrillDownState(args.expand)
    for counterparty_id in sorted(state.retain(report.rows)):
        print(f"WARNING: {counterparty_id} has no outstanding balance", file=sys.stderr)
    details = {
        row.counterparty_id: service.drill_down(invoices, row.counterparty_id, report.as_of_date)
        for row in state.expanded_rows(report.rows)
    }

    if args.format == "json":
        print(render_json(report, details, args.kind))
    else:
        print(render_table(report, details))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        json_format=args.log_format == "json",
    )

    with LogContext.bind(source=str(args.file), report_id=str(uuid4())):
        try:
            return _probe(args) if args.probe_only else _run(args)
        except FileNotFoundError as e:
            print(f"ERROR: File not found: {e.filename}", file=sys.stderr)
            return 1
        except AgingError as e:
            print(f"ERROR: [{e.code}] {e}", file=sys.stderr)
            return 1


if __name__ == "__main__":
    sys.exit(main())
