"""SQLAlchemy models for document entities."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ...infrastructure.database.models import TimestampMixin, UploadMixin, utc_now
from ...infrastructure.database.session import Base


class Document(Base, UploadMixin, TimestampMixin):
    """One processed image.

    Holds the raw recognized text alongside the AI-cleaned version. A
    document can be referenced by any number of note sets; those references
    are not foreign keys, so deleting a document leaves them dangling.
    """

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, init=False)
    ocr_text: Mapped[str] = mapped_column(Text, default="")
    ocr_confidence: Mapped[float] = mapped_column(Float, default=0.0)
    ai_cleaned_text: Mapped[Optional[str]] = mapped_column(Text, default=None)
    ai_processed: Mapped[bool] = mapped_column(Boolean, default=False)
    ai_model: Mapped[Optional[str]] = mapped_column(String(255), default=None)
    upload_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default_factory=utc_now, index=True)
