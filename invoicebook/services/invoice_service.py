# invoicebook/services/invoice_service.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from invoicebook import config
from invoicebook.errors import NotFoundError
from invoicebook.models.common import gen_id, now_iso
from invoicebook.models.invoice import Invoice, create_blank_invoice, generate_invoice_number
from invoicebook.models.party import Seller
from invoicebook.storage.json_repo import JsonRepository
from invoicebook.storage.settings_repo import SettingsRepository

log = logging.getLogger(__name__)


class InvoiceService:
    """
    Stockage des factures + paramètres.
    Le service ne recalcule jamais les totaux : l'appelant passe par le moteur de calcul avant `save`.
    """

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        *,
        repo: Optional[JsonRepository] = None,
        settings: Optional[SettingsRepository] = None,
    ) -> None:
        base = Path(data_dir) if data_dir else config.data_dir()
        self.repo = repo or JsonRepository(
            base / config.INVOICES_FILE,
            entity_name="invoice",
            key="id",
            backup_enabled=config.BACKUP_ENABLED,
            backup_keep=config.BACKUP_KEEP,
        )
        self.settings = settings or SettingsRepository(base / config.SETTINGS_FILE)

    # ----------- CRUD ----------- #

    def save(self, invoice: Invoice) -> Invoice:
        stamp = now_iso()
        # horodatage posé sur l'objet appelant seulement si l'écriture a réussi
        self.repo.upsert(invoice.model_copy(update={"updated_at": stamp}).to_record())
        invoice.updated_at = stamp
        log.info("Saved invoice %s (%s)", invoice.number, invoice.id)
        return invoice

    def get(self, invoice_id: str) -> Optional[Invoice]:
        d = self.repo.get_by_id(invoice_id)
        if d is None:
            return None
        try:
            return Invoice.from_record(d)
        except ValidationError as e:
            log.warning("Stored invoice %s is not readable: %s", invoice_id, e.errors()[:1])
            return None

    def get_all(self) -> List[Invoice]:
        out: List[Invoice] = []
        for d in self.repo.list_all():
            try:
                out.append(Invoice.from_record(d))
            except ValidationError:
                # entrée invalide (ex. import non validé) : ignorée pour ne pas casser les listes
                log.warning("Skipping unreadable invoice record id=%s", d.get("id") if isinstance(d, dict) else None)
                continue
        return out

    def delete(self, invoice_id: str) -> bool:
        deleted = self.repo.delete(invoice_id)
        if deleted:
            log.info("Deleted invoice %s", invoice_id)
        return deleted

    def count(self) -> int:
        return self.repo.count()

    def is_empty(self) -> bool:
        return self.count() == 0

    # ----------- numérotation ----------- #

    def next_sequence(self) -> int:
        # indicatif : deux créations avant sauvegarde obtiennent le même numéro
        return self.count() + 1

    def new_invoice(self, seller: Optional[Seller] = None) -> Invoice:
        """Facture vierge numérotée, non enregistrée."""
        return create_blank_invoice(self.next_sequence(), seller=seller)

    # ----------- duplication ----------- #

    def duplicate(self, invoice_id: str) -> Invoice:
        original = self.get(invoice_id)
        if original is None:
            raise NotFoundError("invoice", invoice_id)

        stamp = now_iso()
        # totaux copiés tels quels (pas de recalcul), seuls paiement/solde sont remis à zéro
        totals = original.totals.model_copy(
            update={"amount_paid": 0.0, "balance_due": original.totals.grand_total}
        )
        copy = original.model_copy(
            update={
                "id": gen_id(),
                "number": generate_invoice_number(self.next_sequence()),
                "status": "draft",
                "created_at": stamp,
                "updated_at": stamp,
                "payments": [],
                "totals": totals,
            },
            deep=True,
        )
        self.repo.upsert(copy.to_record())
        log.info("Duplicated invoice %s as %s (%s)", original.number, copy.number, copy.id)
        return copy

    # ----------- paramètres ----------- #

    def save_setting(self, key: str, value: Any) -> None:
        if hasattr(value, "model_dump"):
            value = value.model_dump(mode="json", by_alias=True)
        self.settings.set(key, value)

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self.settings.get(key, default)

    def all_settings(self) -> Dict[str, Any]:
        return self.settings.all()

    # ----------- remise à zéro ----------- #

    def clear_all(self) -> None:
        previous = self.repo.list_all()
        self.repo.clear()
        try:
            self.settings.clear()
        except Exception:
            # pas d'état à moitié vidé : on remet les factures
            self.repo.replace_all(previous)
            raise
        log.info("Cleared all invoices and settings")
