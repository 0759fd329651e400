"""
Calcul des totaux d'une facture.

Ordre fixe (le changer change les résultats) :
remises lignes → remise globale → port → taxes lignes → taxe globale → paiements.
Aucun arrondi ici : l'arrondi se fait uniquement à l'affichage.
"""
from __future__ import annotations
from typing import Iterable

from invoicebook.models.invoice import Invoice, InvoiceItem, Payment, Totals


def _gross(item: InvoiceItem) -> float:
    return item.quantity * item.unit_price


def _after_own_discount(item: InvoiceItem) -> float:
    gross = _gross(item)
    if item.discount_pct:
        return gross * (1 - item.discount_pct / 100)
    return gross


def line_total(item: InvoiceItem) -> float:
    """Montant d'une ligne après sa propre remise puis sa propre taxe (affichage)."""
    total = _gross(item)
    if item.discount_pct and item.discount_pct > 0:
        total = total * (1 - item.discount_pct / 100)
    if item.tax_rate_pct and item.tax_rate_pct > 0:
        total = total * (1 + item.tax_rate_pct / 100)
    return total


def amount_paid(payments: Iterable[Payment]) -> float:
    return sum((p.amount for p in payments), 0.0)


def compute_totals(invoice: Invoice) -> Totals:
    items = invoice.items
    adj = invoice.adjustments

    subtotal = sum((_gross(it) for it in items), 0.0)

    item_discounts = sum(
        (_gross(it) * it.discount_pct / 100 for it in items if it.discount_pct and it.discount_pct > 0),
        0.0,
    )
    subtotal_after_items = subtotal - item_discounts

    global_discount = subtotal_after_items * adj.global_discount_pct / 100 if adj.global_discount_pct else 0.0
    total_discount = item_discounts + global_discount
    after_discounts = subtotal_after_items - global_discount

    with_shipping = after_discounts + (adj.shipping or 0.0)

    # taxe ligne : sur le montant après la remise de la ligne (pas la remise globale)
    item_taxes = sum(
        (_after_own_discount(it) * it.tax_rate_pct / 100 for it in items if it.tax_rate_pct and it.tax_rate_pct > 0),
        0.0,
    )
    # taxe globale : sur le montant remisé, port compris
    global_tax = with_shipping * adj.global_tax_pct / 100 if adj.global_tax_pct else 0.0

    total_tax = item_taxes + global_tax
    grand_total = with_shipping + total_tax

    paid = amount_paid(invoice.payments)

    return Totals(
        subtotal=subtotal,
        tax=total_tax,
        discount=total_discount,
        grand_total=grand_total,
        amount_paid=paid,
        balance_due=grand_total - paid,  # négatif si trop-perçu
    )


def recalculate(invoice: Invoice) -> Invoice:
    """Copie de la facture avec des totaux à jour ; l'entrée n'est pas modifiée."""
    return invoice.model_copy(update={"totals": compute_totals(invoice)}, deep=True)
