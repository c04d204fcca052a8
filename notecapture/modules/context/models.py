"""SQLAlchemy models for reference (context) documents."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ...infrastructure.database.models import TimestampMixin, UploadMixin, utc_now
from ...infrastructure.database.session import Base
from ..common.constants import DEFAULT_CONTEXT_CATEGORY


class ContextDocument(Base, UploadMixin, TimestampMixin):
    """Reference material whose text is injected into cleanup prompts."""

    __tablename__ = "context_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, init=False)
    content: Mapped[str] = mapped_column(Text, default="")
    description: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(100), default=DEFAULT_CONTEXT_CATEGORY)
    upload_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default_factory=utc_now, index=True)
