from __future__ import annotations
import datetime as dt
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import Field

from .common import CamelModel, gen_id, now_iso, today
from .party import Client, Seller

InvoiceStatus = Literal["draft", "sent", "paid", "overdue", "archived"]
INVOICE_STATUSES = ("draft", "sent", "paid", "overdue", "archived")

DEFAULT_CURRENCY = "USD"
DEFAULT_LANGUAGE = "en"


class InvoiceItem(CamelModel):
    id: str = Field(default_factory=gen_id)
    description: str = ""
    quantity: float = 0.0
    unit_price: float = 0.0
    # pas de bornes [0, 100] : les valeurs passent telles quelles dans les calculs
    discount_pct: Optional[float] = None
    tax_rate_pct: Optional[float] = None


class Payment(CamelModel):
    id: str = Field(default_factory=gen_id)
    date: dt.date = Field(default_factory=today)
    amount: float = 0.0
    note: Optional[str] = None


class Adjustments(CamelModel):
    shipping: Optional[float] = 0.0
    global_discount_pct: Optional[float] = 0.0
    global_tax_pct: Optional[float] = 0.0


class Totals(CamelModel):
    """Montants dérivés : jamais saisis à la main, recalculés à chaque modification."""

    subtotal: float = 0.0
    tax: float = 0.0
    discount: float = 0.0
    grand_total: float = 0.0
    amount_paid: float = 0.0
    balance_due: float = 0.0


class InvoiceMeta(CamelModel):
    po: Optional[str] = None
    reference: Optional[str] = None


class Invoice(CamelModel):
    id: str = Field(default_factory=gen_id)
    number: str = ""
    status: InvoiceStatus = "draft"

    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)
    issue_date: dt.date = Field(default_factory=today)
    due_date: dt.date = Field(default_factory=today)

    currency: str = DEFAULT_CURRENCY
    language: str = DEFAULT_LANGUAGE

    seller: Seller = Field(default_factory=Seller)
    client: Client = Field(default_factory=Client)
    meta: Optional[InvoiceMeta] = None
    # réglages d'affichage (couleur, mode, format de page) : conservés tels quels
    theme: Optional[Dict[str, Any]] = None

    items: List[InvoiceItem] = Field(default_factory=list)
    adjustments: Adjustments = Field(default_factory=Adjustments)
    payments: List[Payment] = Field(default_factory=list)

    notes: Optional[str] = None
    terms: Optional[str] = None

    totals: Totals = Field(default_factory=Totals)

    def to_record(self) -> Dict[str, Any]:
        """Dict JSON prêt à stocker / exporter (clés camelCase)."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Invoice":
        return cls.model_validate(dict(record))


def generate_invoice_number(sequence: int, when: Optional[dt.datetime] = None) -> str:
    when = when or dt.datetime.now()
    return f"INV-{when.year}{when.month:02d}-{sequence:04d}"


def create_blank_invoice(sequence: int = 1, seller: Optional[Seller] = None) -> Invoice:
    stamp = now_iso()
    return Invoice(
        number=generate_invoice_number(sequence),
        status="draft",
        created_at=stamp,
        updated_at=stamp,
        seller=seller.model_copy(deep=True) if seller else Seller(),
    )
