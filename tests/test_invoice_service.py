import re

import pytest

from conftest import make_invoice, pay
from invoicebook.errors import NotFoundError
from invoicebook.models.invoice import InvoiceItem, Totals
from invoicebook.services.invoice_service import InvoiceService


def test_save_and_get(store):
    """Sauvegarde puis relecture : même facture, updated_at rafraîchi."""
    inv = make_invoice()
    stamp = inv.updated_at
    store.save(inv)
    got = store.get(inv.id)
    assert got is not None
    assert got.number == inv.number
    assert got.totals == inv.totals
    assert got.updated_at >= stamp
    assert got.created_at == "2026-01-10T09:00:00.000Z"


def test_get_missing_returns_none(store):
    assert store.get("nope") is None


def test_save_keeps_caller_totals(store):
    """Le stockage ne recalcule pas les totaux."""
    inv = make_invoice()
    inv.totals = Totals(subtotal=1, tax=2, discount=3, grand_total=4, amount_paid=5, balance_due=-1)
    store.save(inv)
    assert store.get(inv.id).totals == inv.totals


def test_save_is_upsert(store):
    inv = make_invoice()
    store.save(inv)
    inv.notes = "updated"
    store.save(inv)
    assert store.count() == 1
    assert store.get(inv.id).notes == "updated"


def test_delete(store):
    inv = make_invoice()
    store.save(inv)
    assert store.delete(inv.id) is True
    assert store.delete(inv.id) is False
    assert store.get(inv.id) is None


def test_get_all_skips_unreadable_records(store):
    store.save(make_invoice())
    store.repo.upsert({"id": "broken", "status": "unknown-status"})
    invoices = store.get_all()
    assert len(invoices) == 1
    assert store.count() == 2


def test_next_sequence_and_new_invoice(store):
    assert store.is_empty()
    assert store.next_sequence() == 1
    store.save(make_invoice())
    assert store.next_sequence() == 2
    blank = store.new_invoice()
    assert re.fullmatch(r"INV-\d{6}-0002", blank.number)
    assert blank.status == "draft"
    assert blank.totals == Totals()
    # pas enregistrée
    assert store.count() == 1


def test_sequence_is_advisory(store):
    """Deux créations avant sauvegarde reçoivent le même numéro."""
    a = store.new_invoice()
    b = store.new_invoice()
    assert a.number == b.number
    assert a.id != b.id


def test_duplicate(store):
    src = make_invoice(
        status="paid",
        items=[InvoiceItem(description="Design", quantity=1, unit_price=500)],
        payments=[pay(200)],
    )
    assert (src.totals.grand_total, src.totals.balance_due) == (500, 300)
    store.save(src)

    dup = store.duplicate(src.id)
    assert dup.id != src.id
    assert dup.status == "draft"
    assert dup.payments == []
    assert dup.totals.amount_paid == 0
    assert dup.totals.balance_due == 500
    assert dup.totals.grand_total == 500
    assert re.fullmatch(r"INV-\d{6}-0002", dup.number)
    assert dup.created_at == dup.updated_at
    assert store.count() == 2
    assert store.get(src.id).status == "paid"


def test_duplicate_inherits_stale_totals(store):
    src = make_invoice()
    src.totals = src.totals.model_copy(update={"subtotal": 999.0, "grand_total": 42.0})
    store.save(src)
    dup = store.duplicate(src.id)
    assert dup.totals.subtotal == 999
    assert dup.totals.balance_due == 42


def test_duplicate_missing_raises(store):
    with pytest.raises(NotFoundError):
        store.duplicate("missing")


def test_settings(store):
    store.save_setting("theme", "dark")
    assert store.get_setting("theme") == "dark"
    assert store.get_setting("absent") is None
    assert store.all_settings() == {"theme": "dark"}


def test_clear_all(store):
    store.save(make_invoice())
    store.save_setting("theme", "dark")
    store.clear_all()
    assert store.is_empty()
    assert store.all_settings() == {}


def test_injected_repositories(tmp_path):
    from invoicebook.storage.json_repo import JsonRepository
    from invoicebook.storage.settings_repo import SettingsRepository

    repo = JsonRepository(tmp_path / "x.json", backup_enabled=False)
    settings = SettingsRepository(tmp_path / "s.json")
    svc = InvoiceService(repo=repo, settings=settings)
    svc.save(make_invoice())
    assert repo.count() == 1


def test_failed_save_leaves_timestamp_untouched(store, monkeypatch):
    """Écriture en échec : updated_at de l'appelant inchangé."""
    from invoicebook.errors import StorageUnavailableError

    inv = make_invoice()
    stamp = inv.updated_at

    def boom(record):
        raise StorageUnavailableError("disk gone")

    monkeypatch.setattr(store.repo, "upsert", boom)
    with pytest.raises(StorageUnavailableError):
        store.save(inv)
    assert inv.updated_at == stamp


def test_theme_survives_get_then_save(store):
    rec = make_invoice().to_record() | {"theme": {"primary": "#3B82F6", "mode": "dark"}}
    store.repo.upsert(rec)
    store.save(store.get(rec["id"]))
    assert store.repo.get_by_id(rec["id"])["theme"] == {"primary": "#3B82F6", "mode": "dark"}
