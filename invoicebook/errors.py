from __future__ import annotations


class InvoiceBookError(Exception):
    """Base des erreurs remontées aux appelants."""


class NotFoundError(InvoiceBookError, LookupError):
    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} with id={key} not found")


class StorageUnavailableError(InvoiceBookError, OSError):
    """Support de stockage inaccessible (lecture ou écriture impossible)."""


class MalformedImportError(InvoiceBookError, ValueError):
    """Le document importé n'a pas la forme d'un export ; rien n'a été écrit."""
