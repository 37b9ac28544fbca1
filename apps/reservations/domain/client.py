"""Client contact details captured with a hold."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class ClientInfo(ValueObject):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Client name is required")
