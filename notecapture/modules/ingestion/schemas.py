"""Pydantic schemas for upload and batch ingestion responses."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..document.schemas import DocumentSummary
from ..note_set.schemas import NoteSetDetail


class DocumentUploadResponse(BaseModel):
    """Response for a single processed upload."""

    success: bool = True
    document: DocumentSummary


class BatchIngestionError(BaseModel):
    """Why one file of a batch was not turned into a document."""

    filename: str
    reason: str


class BatchIngestionResult(BaseModel):
    """Outcome of a batch upload.

    ``note_set`` is None when no file in the batch succeeded.
    """

    note_set: Optional[NoteSetDetail] = None
    processed_count: int = Field(ge=0)
    error_count: int = Field(ge=0)
    errors: List[BatchIngestionError] = Field(default_factory=list)
