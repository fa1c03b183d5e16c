# tvcast/schemas/proxy.py
from typing import Optional

from pydantic import BaseModel


class ProxyRequest(BaseModel):
    url: Optional[str] = None
    # "check" -> só disponibilidade; qualquer outro valor (ou nada) -> proxy
    action: Optional[str] = None


class AvailabilityRead(BaseModel):
    available: bool
    url: str
    cached: bool
