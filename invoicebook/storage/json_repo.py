from __future__ import annotations

import glob
import json
import logging
import os
import shutil
import tempfile
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, TypeVar, Union
from uuid import uuid4

from pydantic import BaseModel

from invoicebook.errors import StorageUnavailableError

log = logging.getLogger(__name__)

T = TypeVar("T", bound=Union[BaseModel, Mapping[str, Any]])


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    return str(o)


def atomic_write_text(path: Path, text: str) -> None:
    """Écrit dans un fichier temporaire voisin puis remplace : jamais de fichier à moitié écrit."""
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class JsonRepository(Generic[T]):
    """
    Repo JSON générique (liste d'enregistrements) avec clé primaire configurable.
    - Rotation de backups (backup_enabled, backup_keep)
    - N'écrit pas si le contenu ne change pas (réduction du bruit et des .bak)
    - Chaque écriture est atomique (fichier temporaire + os.replace)
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        entity_name: str = "entity",
        key: str = "id",
        *,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        self.filepath = Path(filepath)
        self.entity_name = entity_name
        self.key = key
        self._lock = threading.Lock()
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))

        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot create storage directory {self.filepath.parent}: {e}") from e
        if not self.filepath.exists():
            self._write_raw([])

    # ---------------- I/O bas niveau ---------------- #

    def _read_raw(self) -> List[Dict[str, Any]]:
        try:
            with self.filepath.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError:
            # Fichier corrompu → copie à côté et repart sur liste vide
            backup = self.filepath.with_suffix(".corrupt.json")
            log.warning("Corrupt %s file %s, copied to %s", self.entity_name, self.filepath, backup)
            try:
                shutil.copy2(self.filepath, backup)
            except OSError as e:
                log.warning("Could not copy corrupt file aside: %s", e)
            return []
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read {self.filepath}: {e}") from e
        return data if isinstance(data, list) else []

    def _rotate_backups(self) -> None:
        if not self.backup_enabled or self.backup_keep <= 0:
            return
        pattern = str(self.filepath.with_suffix(".*.bak.json"))
        files = sorted(glob.glob(pattern))
        # garde les plus récents
        if len(files) > self.backup_keep:
            for old in files[: len(files) - self.backup_keep]:
                try:
                    Path(old).unlink(missing_ok=True)
                except OSError as e:
                    log.debug("Could not remove old backup %s: %s", old, e)

    def _write_raw(self, data: Iterable[Mapping[str, Any]]) -> None:
        with self._lock:
            new_dump = json.dumps(list(data), ensure_ascii=False, indent=2, default=_json_default)

            # si contenu identique → ne rien faire
            if self.filepath.exists():
                try:
                    if self.filepath.read_text(encoding="utf-8") == new_dump:
                        return
                except OSError:
                    pass

            # backup
            if self.backup_enabled and self.filepath.exists():
                ts = datetime.now().strftime("%Y%m%d-%H%M%S")
                backup = self.filepath.with_suffix(f".{ts}.bak.json")
                try:
                    shutil.copy2(self.filepath, backup)
                except OSError as e:
                    log.warning("Backup of %s failed: %s", self.filepath, e)
                self._rotate_backups()

            # write
            try:
                atomic_write_text(self.filepath, new_dump)
            except OSError as e:
                raise StorageUnavailableError(f"Cannot write {self.filepath}: {e}") from e

    # ---------------- Helpers ---------------- #

    @staticmethod
    def _to_dict(item: T) -> Dict[str, Any]:
        if isinstance(item, BaseModel):
            return item.model_dump(mode="json", by_alias=True)
        if isinstance(item, Mapping):
            return dict(item)
        return dict(item.__dict__)  # type: ignore[arg-type]

    # ---------------- CRUD ---------------- #

    def list_all(self) -> List[Dict[str, Any]]:
        return self._read_raw()

    def count(self) -> int:
        return len(self._read_raw())

    def get_by_id(self, obj_id: Any) -> Optional[Dict[str, Any]]:
        k = self.key
        for it in self._read_raw():
            if str(it.get(k)) == str(obj_id):
                return it
        return None

    def upsert(self, item: T) -> Dict[str, Any]:
        """Remplace l'enregistrement de même clé (pas de fusion champ à champ), sinon l'ajoute."""
        record = self._to_dict(item)
        k = self.key
        if not record.get(k):
            record[k] = uuid4().hex
        data = self._read_raw()
        for idx, existing in enumerate(data):
            if str(existing.get(k)) == str(record[k]):
                data[idx] = record
                break
        else:
            data.append(record)
        self._write_raw(data)
        return record

    def upsert_many(self, items: Iterable[T]) -> int:
        """Upsert en une seule écriture."""
        k = self.key
        data = self._read_raw()
        index = {str(d.get(k)): i for i, d in enumerate(data)}
        n = 0
        for item in items:
            record = self._to_dict(item)
            if not record.get(k):
                record[k] = uuid4().hex
            pos = index.get(str(record[k]))
            if pos is None:
                index[str(record[k])] = len(data)
                data.append(record)
            else:
                data[pos] = record
            n += 1
        self._write_raw(data)
        return n

    def delete(self, obj_id: Any) -> bool:
        k = self.key
        data = self._read_raw()
        new_data = [d for d in data if str(d.get(k)) != str(obj_id)]
        changed = len(new_data) != len(data)
        if changed:
            self._write_raw(new_data)
        return changed

    def replace_all(self, items: Iterable[T]) -> None:
        """Remplace tout le contenu ; une clé par enregistrement, le dernier de même clé gagne."""
        k = self.key
        staged: Dict[str, Dict[str, Any]] = {}
        for item in items:
            record = self._to_dict(item)
            if not record.get(k):
                record[k] = uuid4().hex
            staged[str(record[k])] = record
        self._write_raw(list(staged.values()))

    def clear(self) -> None:
        self._write_raw([])
