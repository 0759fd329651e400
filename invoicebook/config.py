from __future__ import annotations
import logging
import os
from pathlib import Path

# --- Chemins de base ---
ROOT_DIR = Path(__file__).resolve().parents[1]


def _env_flag(name: str, default: bool) -> bool:
    val = os.environ.get(name)
    if val is None or val.strip() == "":
        return default
    return val.strip().lower() not in ("0", "false", "no", "off")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def data_dir() -> Path:
    """INVOICEBOOK_DATA_DIR si défini, sinon <racine>/data."""
    val = os.environ.get("INVOICEBOOK_DATA_DIR")
    return Path(val).expanduser() if val else ROOT_DIR / "data"


INVOICES_FILE = "invoices.json"
SETTINGS_FILE = "settings.json"

BACKUP_ENABLED = _env_flag("INVOICEBOOK_BACKUPS", True)
BACKUP_KEEP = _env_int("INVOICEBOOK_BACKUP_KEEP", 5)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure le logger racine du package (appelé par le point d'entrée uniquement)."""
    log = logging.getLogger("invoicebook")
    log.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        log.addHandler(handler)
