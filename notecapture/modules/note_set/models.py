"""SQLAlchemy models for note sets and their memberships."""

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ...infrastructure.database.models import TimestampMixin
from ...infrastructure.database.session import Base


class NoteSet(Base, TimestampMixin):
    """A named, ordered collection of documents."""

    __tablename__ = "note_sets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, init=False)
    name: Mapped[str] = mapped_column(String(255), index=True)


class NoteSetMember(Base):
    """One (document, order) entry of a note set.

    ``document_id`` is intentionally not a foreign key: removing a document
    leaves its memberships in place, and readers resolve them to ``None``.
    """

    __tablename__ = "note_set_members"
    __table_args__ = (UniqueConstraint("note_set_id", "document_id", name="uq_note_set_member"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, init=False)
    note_set_id: Mapped[int] = mapped_column(Integer, ForeignKey("note_sets.id", ondelete="CASCADE"), index=True)
    document_id: Mapped[int] = mapped_column(Integer, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
