"""Pydantic schemas for context documents."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..common.constants import DEFAULT_CONTEXT_CATEGORY
from ..common.schemas import TimestampSchema


class ContextDocumentCreateInternal(BaseModel):
    filename: str
    original_name: str
    file_path: str
    mime_type: str
    size: int = Field(ge=0)
    content: str = ""
    description: str = ""
    category: str = Field(default=DEFAULT_CONTEXT_CATEGORY, max_length=100)


class ContextDocumentRead(TimestampSchema, ContextDocumentCreateInternal):
    """Schema for reading context document data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    upload_date: datetime


class ContextDocumentSummary(BaseModel):
    """Compact view returned after a context upload."""

    id: int
    original_name: str
    description: str
    category: str
    upload_date: datetime

    @classmethod
    def from_context_document(cls, document: ContextDocumentRead) -> "ContextDocumentSummary":
        return cls(
            id=document.id,
            original_name=document.original_name,
            description=document.description,
            category=document.category,
            upload_date=document.upload_date,
        )


class ContextUploadResponse(BaseModel):
    success: bool = True
    context_document: ContextDocumentSummary
