from __future__ import annotations
from typing import Dict, List, Literal, Optional

from pydantic import Field

from .common import CamelModel
from .invoice import INVOICE_STATUSES, Invoice, InvoiceStatus

AgingBucket = Literal["current", "1-30", "31-60", "61-90", "90+"]
AGING_BUCKETS = ("current", "1-30", "31-60", "61-90", "90+")


class InvoiceFilter(CamelModel):
    """Critères optionnels, combinés en ET."""

    status: Optional[List[InvoiceStatus]] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    search_query: Optional[str] = None


def _zero_by_status() -> Dict[str, int]:
    return {s: 0 for s in INVOICE_STATUSES}


class InvoiceSummary(CamelModel):
    """
    Agrégats sur les factures lisibles.
    Les enregistrements illisibles (import non validé) ne sont pas comptés :
    `total_invoices` peut donc être inférieur à `InvoiceService.count()`.
    """

    total_invoices: int = 0
    total_revenue: float = 0.0
    total_paid: float = 0.0
    total_outstanding: float = 0.0
    by_status: Dict[str, int] = Field(default_factory=_zero_by_status)


class AgingEntry(CamelModel):
    invoice: Invoice
    days_overdue: int
    bucket: AgingBucket


class AgingReport(CamelModel):
    entries: List[AgingEntry] = Field(default_factory=list)
    total_outstanding: float = 0.0

    def by_bucket(self) -> Dict[str, List[AgingEntry]]:
        out: Dict[str, List[AgingEntry]] = {b: [] for b in AGING_BUCKETS}
        for e in self.entries:
            out[e.bucket].append(e)
        return out
