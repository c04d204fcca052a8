"""Pydantic schemas for document entities."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..common.schemas import TimestampSchema


class DocumentBase(BaseModel):
    """Base schema for document data."""

    filename: str = Field(description="Name of the stored file")
    original_name: str = Field(description="File name as uploaded")
    file_path: str = Field(description="Where the stored file lives")
    mime_type: str
    size: int = Field(ge=0, description="Size in bytes")
    ocr_text: str = Field(default="", description="Raw recognized text")
    ocr_confidence: float = Field(default=0.0, ge=0, le=100, description="Recognition confidence (0-100)")
    ai_cleaned_text: Optional[str] = Field(default=None, description="AI-reformatted text")
    ai_processed: bool = Field(default=False, description="Whether AI cleanup succeeded")
    ai_model: Optional[str] = Field(default=None, description="Model used for cleanup")


class DocumentCreateInternal(DocumentBase):
    """Schema used by the ingestion pipeline to persist a document."""

    pass


class DocumentUpdate(BaseModel):
    """Schema for editing a document's text fields."""

    model_config = ConfigDict(extra="forbid")

    ocr_text: Optional[str] = None
    ai_cleaned_text: Optional[str] = None


class DocumentRead(TimestampSchema, DocumentBase):
    """Schema for reading document data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    upload_date: datetime


class DocumentSummary(BaseModel):
    """Compact document view returned after an upload."""

    id: int
    original_name: str
    ocr_text: str
    ai_cleaned_text: Optional[str]
    ai_processed: bool
    confidence: float
    upload_date: datetime

    @classmethod
    def from_document(cls, document: DocumentRead) -> "DocumentSummary":
        return cls(
            id=document.id,
            original_name=document.original_name,
            ocr_text=document.ocr_text,
            ai_cleaned_text=document.ai_cleaned_text,
            ai_processed=document.ai_processed,
            confidence=document.ocr_confidence,
            upload_date=document.upload_date,
        )
