from __future__ import annotations
import datetime as dt
import logging
from typing import Optional

from pydantic import ValidationError

from invoicebook.errors import NotFoundError
from invoicebook.models.invoice import Invoice, InvoiceStatus, Payment, Totals
from invoicebook.models.party import Seller
from invoicebook.services.invoice_service import InvoiceService
from invoicebook.services.totals import compute_totals

log = logging.getLogger(__name__)

LAST_INVOICE_KEY = "lastInvoiceId"
LAST_SELLER_KEY = "lastSeller"


def derive_status(previous: InvoiceStatus, totals: Totals) -> InvoiceStatus:
    """Règle appliquée après chaque recalcul : soldée → paid, ré-ouverte → sent."""
    if totals.balance_due == 0 and totals.grand_total > 0:
        return "paid"
    if previous == "paid" and totals.balance_due > 0:
        return "sent"
    return previous


def is_overdue(invoice: Invoice, today: Optional[dt.date] = None) -> bool:
    if invoice.status in ("paid", "archived"):
        return False
    today = today or dt.date.today()
    return invoice.due_date < today and invoice.totals.balance_due > 0


class WorkflowService:
    def __init__(self, invoices: InvoiceService):
        self.invoices = invoices

    def _refresh(self, inv: Invoice) -> Invoice:
        inv.totals = compute_totals(inv)
        inv.status = derive_status(inv.status, inv.totals)
        return inv

    # Etape 1 : édition en mémoire (rien n'est écrit)
    def add_payment(
        self,
        inv: Invoice,
        amount: float,
        date: Optional[dt.date] = None,
        note: Optional[str] = None,
    ) -> Payment:
        pay = Payment(amount=amount, date=date or dt.date.today(), note=note)
        inv.payments.append(pay)
        self._refresh(inv)
        return pay

    def remove_payment(self, inv: Invoice, payment_id: str) -> bool:
        before = len(inv.payments)
        inv.payments = [p for p in inv.payments if p.id != payment_id]
        self._refresh(inv)
        return len(inv.payments) != before

    # Etape 2 : enregistrement explicite
    def commit(self, inv: Invoice) -> Invoice:
        self._refresh(inv)
        self.invoices.save(inv)
        self.invoices.save_setting(LAST_INVOICE_KEY, inv.id)
        self.invoices.save_setting(LAST_SELLER_KEY, inv.seller)
        return inv

    def last_seller(self) -> Optional[Seller]:
        raw = self.invoices.get_setting(LAST_SELLER_KEY)
        if not raw:
            return None
        try:
            return Seller.model_validate(raw)
        except ValidationError:
            log.warning("Ignoring unreadable %s setting", LAST_SELLER_KEY)
            return None

    def open_last(self) -> Invoice:
        """Dernière facture éditée, sinon une facture vierge avec le dernier vendeur."""
        last_id = self.invoices.get_setting(LAST_INVOICE_KEY)
        if last_id:
            inv = self.invoices.get(last_id)
            if inv is not None:
                return inv
        return self.invoices.new_invoice(seller=self.last_seller())

    # Etape 3 : actions depuis l'historique
    def mark_paid(self, invoice_id: str) -> Invoice:
        inv = self.invoices.get(invoice_id)
        if inv is None:
            raise NotFoundError("invoice", invoice_id)
        inv.payments.append(Payment(amount=inv.totals.balance_due, note="Marked as paid from history"))
        inv.totals = compute_totals(inv)
        inv.status = "paid"
        self.invoices.save(inv)
        return inv

    def mark_sent(self, invoice_id: str) -> Invoice:
        """Un brouillon envoyé (PDF généré) passe à 'sent' ; les autres statuts ne bougent pas."""
        inv = self.invoices.get(invoice_id)
        if inv is None:
            raise NotFoundError("invoice", invoice_id)
        if inv.status == "draft":
            inv.status = "sent"
            self.invoices.save(inv)
        return inv
