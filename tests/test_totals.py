from invoicebook.models.invoice import Adjustments, Invoice, InvoiceItem, Payment, Totals
from invoicebook.services.totals import compute_totals, line_total, recalculate


def _inv(items=(), payments=(), **adj):
    return Invoice(items=list(items), payments=list(payments), adjustments=Adjustments(**adj))


def test_empty_invoice_is_all_zero():
    """Aucune ligne, aucun paiement, aucun ajustement → totaux à zéro."""
    assert compute_totals(Invoice()) == Totals(
        subtotal=0, tax=0, discount=0, grand_total=0, amount_paid=0, balance_due=0
    )


def test_item_discount_then_item_tax():
    """Remise ligne appliquée avant la taxe ligne."""
    inv = _inv([InvoiceItem(quantity=2, unit_price=100, discount_pct=10, tax_rate_pct=20)])
    t = compute_totals(inv)
    assert t.subtotal == 200
    assert t.discount == 20
    assert t.tax == 36
    assert t.grand_total == 216
    assert t.balance_due == 216


def test_global_tax_applies_on_discounted_amount_with_shipping():
    """Taxe globale calculée sur (montant remisé + port)."""
    inv = _inv([InvoiceItem(quantity=1, unit_price=100)], global_discount_pct=10, shipping=5, global_tax_pct=10)
    t = compute_totals(inv)
    assert t.subtotal == 100
    assert t.discount == 10
    assert t.tax == 9.5
    assert t.grand_total == 104.5


def test_global_discount_applies_after_item_discounts():
    inv = _inv(
        [
            InvoiceItem(quantity=1, unit_price=200, discount_pct=50),
            InvoiceItem(quantity=4, unit_price=25),
        ],
        global_discount_pct=20,
    )
    t = compute_totals(inv)
    # 300 - 100 (ligne) = 200 ; remise globale 20 % de 200 = 40
    assert t.subtotal == 300
    assert t.discount == 140
    assert t.grand_total == 160


def test_item_tax_ignores_global_discount():
    inv = _inv([InvoiceItem(quantity=1, unit_price=100, tax_rate_pct=10)], global_discount_pct=50)
    t = compute_totals(inv)
    assert t.tax == 10
    assert t.grand_total == 60


def test_payments_and_overpayment():
    """Solde négatif autorisé (trop-perçu), sans arrondi."""
    inv = _inv(
        [InvoiceItem(quantity=3, unit_price=19.99)],
        payments=[Payment(amount=50), Payment(amount=20)],
    )
    t = compute_totals(inv)
    assert t.amount_paid == 70
    assert t.balance_due == t.grand_total - t.amount_paid
    assert t.balance_due < 0


def test_no_rounding_inside_pipeline():
    inv = _inv([InvoiceItem(quantity=3, unit_price=0.1)])
    assert compute_totals(inv).subtotal == 3 * 0.1


def test_idempotent_and_input_untouched():
    inv = _inv(
        [InvoiceItem(quantity=7, unit_price=13.37, discount_pct=3.3, tax_rate_pct=8.25)],
        payments=[Payment(amount=12.5)],
        shipping=4.99,
        global_discount_pct=2.5,
        global_tax_pct=5,
    )
    before = inv.model_dump()
    first = compute_totals(inv)
    second = compute_totals(recalculate(inv))
    assert first == second
    assert inv.model_dump() == before


def test_out_of_range_values_are_not_rejected():
    """Pas de validation des bornes : les valeurs passent dans le calcul."""
    inv = _inv([InvoiceItem(quantity=-1, unit_price=50, discount_pct=150)])
    t = compute_totals(inv)
    assert t.subtotal == -50
    assert t.discount == -75


def test_line_total():
    assert line_total(InvoiceItem(quantity=2, unit_price=100, discount_pct=10, tax_rate_pct=20)) == 216
    assert line_total(InvoiceItem(quantity=2, unit_price=50)) == 100
