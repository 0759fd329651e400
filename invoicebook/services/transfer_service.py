"""
Export / import de l'ensemble des données (factures + paramètres).

Format : un seul document JSON
    {"formatVersion": 1, "exportedAt": "...", "invoices": [...], "settings": [{"key": ..., "value": ...}]}

L'import vérifie la forme du document avant toute écriture. Les factures ne sont
pas validées individuellement : elles sont écrites telles quelles.
"""
from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Union

from pydantic import ValidationError

from invoicebook.errors import MalformedImportError, StorageUnavailableError
from invoicebook.models.snapshot import FORMAT_VERSION, ExportDocument, SettingEntry
from invoicebook.services.invoice_service import InvoiceService
from invoicebook.storage.json_repo import atomic_write_text

log = logging.getLogger(__name__)

Document = Union[str, bytes, Mapping[str, Any]]


def parse_document(document: Document) -> ExportDocument:
    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedImportError(f"Import document is not valid JSON: {e}") from e
    if not isinstance(document, Mapping):
        raise MalformedImportError("Import document must be a JSON object")
    try:
        return ExportDocument.model_validate(dict(document))
    except ValidationError as e:
        raise MalformedImportError(f"Import document has an unexpected shape: {e}") from e


class TransferService:
    def __init__(self, invoices: InvoiceService):
        self.invoices = invoices

    # ---------------- export ---------------- #

    def export(self) -> ExportDocument:
        return ExportDocument(
            format_version=FORMAT_VERSION,
            invoices=self.invoices.repo.list_all(),
            settings=[SettingEntry(key=k, value=v) for k, v in self.invoices.all_settings().items()],
        )

    def export_json(self, indent: int = 2) -> str:
        return json.dumps(self.export().model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=indent)

    def export_to(self, path: Union[str, os.PathLike]) -> Path:
        out = Path(path)
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_text(out, self.export_json())
        except OSError as e:
            raise StorageUnavailableError(f"Cannot write export file {out}: {e}") from e
        log.info("Exported data to %s", out)
        return out

    # ---------------- import ---------------- #

    def import_data(self, document: Document, merge: bool = False) -> int:
        doc = parse_document(document)
        if doc.format_version > FORMAT_VERSION:
            log.info("Importing newer format version %s (reader is %s)", doc.format_version, FORMAT_VERSION)

        repo, settings = self.invoices.repo, self.invoices.settings
        if merge:
            # même id → écrasé, pas de détection de conflit
            repo.upsert_many(doc.invoices)
            settings.update(doc.settings_map())
        else:
            # état complet préparé en mémoire, puis une écriture par collection
            previous = repo.list_all()
            repo.replace_all(doc.invoices)
            try:
                settings.replace_all(doc.settings_map())
            except Exception:
                repo.replace_all(previous)
                raise

        log.info("Imported %d invoices (merge=%s)", len(doc.invoices), merge)
        return len(doc.invoices)

    def import_from(self, path: Union[str, os.PathLike], merge: bool = False) -> int:
        p = Path(path)
        try:
            raw = p.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read import file {p}: {e}") from e
        return self.import_data(raw, merge=merge)
