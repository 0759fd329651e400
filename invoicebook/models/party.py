from __future__ import annotations
from typing import Optional

from .common import CamelModel


class Seller(CamelModel):
    name: str = ""
    address: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    logo_data_url: Optional[str] = None


class Client(CamelModel):
    name: str = ""
    address: Optional[str] = None
    email: Optional[str] = None
