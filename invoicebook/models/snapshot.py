from __future__ import annotations
from typing import Any, Dict, List

from pydantic import ConfigDict, Field, model_validator

from .common import CamelModel, now_iso

FORMAT_VERSION = 1


class SettingEntry(CamelModel):
    key: str
    value: Any = None


class ExportDocument(CamelModel):
    """
    Document d'échange (export / import).
    - `invoices` reste une liste de dicts bruts : pas de validation par facture
    - clés inconnues conservées (versions futures du format)
    """

    model_config = ConfigDict(extra="allow")

    format_version: int = FORMAT_VERSION
    exported_at: str = Field(default_factory=now_iso)
    invoices: List[Dict[str, Any]] = Field(default_factory=list)
    settings: List[SettingEntry] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def legacy_version_key(cls, data: Any) -> Any:
        # les premiers exports écrivaient "version" au lieu de "formatVersion"
        if isinstance(data, dict) and "version" in data and "formatVersion" not in data \
                and "format_version" not in data:
            data = dict(data)
            data["formatVersion"] = data.pop("version")
        if isinstance(data, dict):
            # null == absent
            data = {k: v for k, v in data.items() if not (k in ("invoices", "settings") and v is None)}
        return data

    def settings_map(self) -> Dict[str, Any]:
        return {s.key: s.value for s in self.settings}
