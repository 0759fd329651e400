from __future__ import annotations
import datetime as dt
from typing import List, Optional

from invoicebook.models.invoice import Invoice
from invoicebook.models.query import AgingBucket, AgingEntry, AgingReport, InvoiceFilter, InvoiceSummary
from invoicebook.services.invoice_service import InvoiceService


def matches_query(inv: Invoice, query: str) -> bool:
    """Sous-chaîne insensible à la casse sur numéro, client, vendeur ou notes."""
    if not query:
        return True
    q = query.lower()
    terms = (inv.number, inv.client.name, inv.seller.name, inv.notes)
    return any(q in t.lower() for t in terms if t)


def aging_bucket(days_overdue: int) -> AgingBucket:
    if days_overdue <= 0:
        return "current"
    if days_overdue <= 30:
        return "1-30"
    if days_overdue <= 60:
        return "31-60"
    if days_overdue <= 90:
        return "61-90"
    return "90+"


class QueryService:
    def __init__(self, invoices: InvoiceService):
        self.invoices = invoices

    def filter(self, criteria: Optional[InvoiceFilter] = None) -> List[Invoice]:
        c = criteria or InvoiceFilter()
        out = self.invoices.get_all()

        if c.status:
            wanted = set(c.status)
            out = [inv for inv in out if inv.status in wanted]
        # dates ISO comparées comme chaînes (bornes incluses)
        if c.date_from:
            out = [inv for inv in out if inv.created_at >= c.date_from]
        if c.date_to:
            out = [inv for inv in out if inv.created_at <= c.date_to]
        if c.search_query:
            out = [inv for inv in out if matches_query(inv, c.search_query)]

        # plus récentes d'abord ; tri stable pour les égalités
        out.sort(key=lambda inv: inv.created_at, reverse=True)
        return out

    def summary(self) -> InvoiceSummary:
        s = InvoiceSummary()
        for inv in self.invoices.get_all():
            s.total_invoices += 1
            s.total_revenue += inv.totals.grand_total
            s.total_paid += inv.totals.amount_paid
            s.total_outstanding += inv.totals.balance_due
            s.by_status[inv.status] = s.by_status.get(inv.status, 0) + 1
        return s

    def aging_report(self, today: Optional[dt.date] = None) -> AgingReport:
        today = today or dt.date.today()
        entries: List[AgingEntry] = []
        total = 0.0
        for inv in self.invoices.get_all():
            if inv.totals.balance_due <= 0:
                continue
            days = (today - inv.due_date).days
            entries.append(AgingEntry(invoice=inv, days_overdue=days, bucket=aging_bucket(days)))
            total += inv.totals.balance_due
        entries.sort(key=lambda e: e.days_overdue, reverse=True)
        return AgingReport(entries=entries, total_outstanding=total)
