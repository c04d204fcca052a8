"""Pydantic schemas for note set entities."""

from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..common.schemas import TimestampSchema
from ..document.schemas import DocumentRead


def _strip_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("Name cannot be empty")
    return value


class MembershipEntry(BaseModel):
    """A document reference and its order inside a note set."""

    document_id: int
    order: int = Field(ge=0)


class NoteSetMemberRead(MembershipEntry):
    """Membership with the document resolved; ``document`` is None when it was deleted."""

    document: Optional[DocumentRead] = None


class NoteSetCreate(BaseModel):
    """Schema for creating a note set from existing documents."""

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(max_length=255, description="Note set name")]
    document_ids: List[int] = Field(default_factory=list, description="Documents in display order")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_name(v)  # type: ignore[return-value]


class NoteSetUpdate(BaseModel):
    """Schema for renaming a note set or replacing its documents wholesale."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[Annotated[str, Field(max_length=255)]] = None
    document_ids: Optional[List[int]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _strip_name(v)


class NoteSetAddDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    document_id: int


class NoteSetRead(TimestampSchema):
    """Schema for reading note set data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    documents: List[MembershipEntry] = Field(default_factory=list)
    document_count: int = Field(default=0, description="Number of membership entries")


class NoteSetDetail(NoteSetRead):
    """Note set with every member document resolved."""

    documents: List[NoteSetMemberRead] = Field(default_factory=list)  # type: ignore[assignment]
