from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from invoicebook import config
from invoicebook.errors import InvoiceBookError
from invoicebook.models.invoice import INVOICE_STATUSES, Invoice
from invoicebook.models.query import InvoiceFilter
from invoicebook.services.formatting import format_currency, format_date
from invoicebook.services.invoice_service import InvoiceService
from invoicebook.services.query_service import QueryService
from invoicebook.services.transfer_service import TransferService
from invoicebook.services.workflow_service import WorkflowService

log = logging.getLogger(__name__)


def _row(inv: Invoice) -> str:
    return (
        f"{inv.number:<18} {inv.status:<9} {format_date(inv.due_date):<20} "
        f"{inv.client.name or '-':<24} {format_currency(inv.totals.grand_total, inv.currency):>14} "
        f"{format_currency(inv.totals.balance_due, inv.currency):>14}  {inv.id}"
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="invoicebook", description="Local invoice store")
    p.add_argument("--data-dir", help="storage directory (default: INVOICEBOOK_DATA_DIR or ./data)")
    p.add_argument("--log-level", default=None)
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("summary", help="portfolio totals and counts by status")

    ls = sub.add_parser("list", help="list invoices, newest first")
    ls.add_argument("--status", action="append", choices=INVOICE_STATUSES)
    ls.add_argument("--from", dest="date_from")
    ls.add_argument("--to", dest="date_to")
    ls.add_argument("--search")

    sub.add_parser("aging", help="unpaid balances by days overdue")

    ex = sub.add_parser("export", help="write every invoice and setting to a JSON file")
    ex.add_argument("path")

    im = sub.add_parser("import", help="load a JSON export (replaces everything unless --merge)")
    im.add_argument("path")
    im.add_argument("--merge", action="store_true")

    for name in ("mark-paid", "duplicate", "delete"):
        sp = sub.add_parser(name)
        sp.add_argument("invoice_id")
    return p


def run(args: argparse.Namespace) -> int:
    store = InvoiceService(args.data_dir)
    cmd = args.command

    if cmd == "summary":
        s = QueryService(store).summary()
        print(f"Invoices:    {s.total_invoices}")
        print(f"Revenue:     {format_currency(s.total_revenue)}")
        print(f"Paid:        {format_currency(s.total_paid)}")
        print(f"Outstanding: {format_currency(s.total_outstanding)}")
        for status, n in s.by_status.items():
            print(f"  {status:<9} {n}")
    elif cmd == "list":
        crit = InvoiceFilter(status=args.status, date_from=args.date_from, date_to=args.date_to,
                             search_query=args.search)
        for inv in QueryService(store).filter(crit):
            print(_row(inv))
    elif cmd == "aging":
        report = QueryService(store).aging_report()
        for e in report.entries:
            print(f"{e.bucket:<8} {e.days_overdue:>5}d  {_row(e.invoice)}")
        print(f"Total outstanding: {format_currency(report.total_outstanding)}")
    elif cmd == "export":
        out = TransferService(store).export_to(args.path)
        print(f"Exported to {out}")
    elif cmd == "import":
        n = TransferService(store).import_from(args.path, merge=args.merge)
        print(f"Imported {n} invoices")
    elif cmd == "mark-paid":
        print(_row(WorkflowService(store).mark_paid(args.invoice_id)))
    elif cmd == "duplicate":
        print(_row(store.duplicate(args.invoice_id)))
    elif cmd == "delete":
        if not store.delete(args.invoice_id):
            print(f"No invoice with id {args.invoice_id}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config.configure_logging(args.log_level)
    try:
        return run(args)
    except InvoiceBookError as e:
        log.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
