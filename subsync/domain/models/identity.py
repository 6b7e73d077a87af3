from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True, frozen=True)
class VerifiedIdentity:
    """Caller identity extracted from a verified bearer credential."""

    subject: str
    email: Optional[str] = None
