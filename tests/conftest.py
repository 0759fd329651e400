import pytest

from invoicebook.models.invoice import Adjustments, Invoice, InvoiceItem, Payment
from invoicebook.models.party import Client, Seller
from invoicebook.services.invoice_service import InvoiceService
from invoicebook.services.totals import compute_totals


@pytest.fixture
def store(tmp_path):
    return InvoiceService(tmp_path / "data")


def make_invoice(
    number="INV-202601-0001",
    status="draft",
    client="Acme Corp",
    seller="Studio Nord",
    created_at="2026-01-10T09:00:00.000Z",
    due_date="2026-02-10",
    items=None,
    payments=None,
    notes=None,
    **adjustments,
):
    inv = Invoice(
        number=number,
        status=status,
        created_at=created_at,
        updated_at=created_at,
        due_date=due_date,
        client=Client(name=client),
        seller=Seller(name=seller),
        items=items if items is not None else [InvoiceItem(description="Service", quantity=1, unit_price=100)],
        payments=payments or [],
        adjustments=Adjustments(**adjustments),
        notes=notes,
    )
    inv.totals = compute_totals(inv)
    return inv


def pay(amount, date="2026-01-15"):
    return Payment(amount=amount, date=date)
