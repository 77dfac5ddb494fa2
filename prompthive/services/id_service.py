"""Human readable prompt codes such as ``VIBE-12``."""

from __future__ import annotations

import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

from prompthive.models.technical_id import TechnicalIdSequence

logger = logging.getLogger("prompthive.services.id")

UNASSIGNED = "Unassigned"
_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def technical_id_prefix(collection_name: Optional[str]) -> str:
    prefix = _NON_ALNUM.sub("", (collection_name or "").upper())[:4]
    if not prefix:
        return "GEN"
    if len(prefix) < 3:
        return prefix.ljust(3, "X")
    return prefix


def generate_technical_id(db: Session, collection_name: Optional[str]) -> str:
    """Issue the next code for the collection's prefix. Flushes, does not commit."""
    prefix = technical_id_prefix(collection_name)

    sequence = (
        db.query(TechnicalIdSequence)
        .filter(TechnicalIdSequence.prefix == prefix)
        .with_for_update()
        .first()
    )
    if sequence is None:
        sequence = TechnicalIdSequence(prefix=prefix, last_value=0)
        db.add(sequence)

    sequence.last_value += 1
    db.flush()
    return f"{prefix}-{sequence.last_value}"
