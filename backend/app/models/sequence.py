import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class SequenceDefinition(Base):
    """One row per document numbering sequence (SO, PO, INV, CA, ...)."""

    __tablename__ = "numbering_sequences"
    __table_args__ = (
        CheckConstraint("next_number >= 1", name="ck_numbering_sequences_next_number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    sequence_code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    prefix_template: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    next_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
