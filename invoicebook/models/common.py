from __future__ import annotations
from datetime import date, datetime, timezone
import uuid

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def gen_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    # même forme partout (ms + "Z") : les comparaisons de chaînes restent valides
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today() -> date:
    return date.today()


class CamelModel(BaseModel):
    """Clés camelCase dans les JSON, snake_case côté Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",  # tolère les clés inconnues (formats plus récents)
    )
