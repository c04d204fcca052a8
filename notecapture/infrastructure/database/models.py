from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, MappedAsDataclass, mapped_column


def utc_now() -> datetime:
    return datetime.now(UTC)


class TimestampMixin(MappedAsDataclass):
    """Mixin for adding created_at and updated_at timestamp columns.

    Both columns are timezone-aware UTC and excluded from the generated
    ``__init__``. ``updated_at`` is not refreshed by the database; services
    that mutate a record set it themselves (FastCRUD's ``update`` also does
    this when the column is present).

    Attributes:
        created_at: Timestamp when the record was created.
        updated_at: Timestamp when the record was last updated.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default_factory=utc_now,
        nullable=False,
        init=False,
    )

    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        default_factory=utc_now,
        nullable=True,
        init=False,
    )


class UploadMixin(MappedAsDataclass):
    """Columns shared by every record that owns a stored upload."""

    filename: Mapped[str] = mapped_column(nullable=False)
    original_name: Mapped[str] = mapped_column(nullable=False)
    file_path: Mapped[str] = mapped_column(nullable=False)
    mime_type: Mapped[str] = mapped_column(nullable=False)
    size: Mapped[int] = mapped_column(nullable=False)
