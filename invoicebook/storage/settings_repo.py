from __future__ import annotations
import json, logging, threading
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from invoicebook.errors import StorageUnavailableError
from invoicebook.storage.json_repo import _json_default, atomic_write_text

log = logging.getLogger(__name__)


class SettingsRepository:
    """Paramètres clé → valeur (objet JSON), sans schéma."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot create storage directory {self.path.parent}: {e}") from e
        if not self.path.exists():
            self._save({})

    def _load(self) -> Dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            log.warning("Corrupt settings file %s, starting empty", self.path)
            return {}
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read {self.path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def _save(self, data: Mapping[str, Any]) -> None:
        with self._lock:
            dump = json.dumps(dict(data), ensure_ascii=False, indent=2, default=_json_default)
            try:
                atomic_write_text(self.path, dump)
            except OSError as e:
                raise StorageUnavailableError(f"Cannot write {self.path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def all(self) -> Dict[str, Any]:
        return self._load()

    def update(self, values: Mapping[str, Any]) -> None:
        data = self._load()
        data.update(values)
        self._save(data)

    def replace_all(self, values: Mapping[str, Any]) -> None:
        self._save(values)

    def clear(self) -> None:
        self._save({})
