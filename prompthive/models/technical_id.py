from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import TimestampedUUIDModel


class TechnicalIdSequence(TimestampedUUIDModel):
    """Last issued number per technical id prefix."""

    __tablename__ = "technical_id_sequences"

    prefix: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
