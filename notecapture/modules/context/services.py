"""Context document management service."""

import asyncio
from pathlib import Path
from typing import Any, Optional, cast

import fitz
from fastcrud.paginated.response import paginated_response
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.logging import get_logger
from ...infrastructure.storage import StoredUpload, UploadStore, get_upload_store, is_context_upload
from ...infrastructure.storage.uploads import UploadLike
from ..common.constants import CONTEXT_TEXT_EXTENSIONS, DEFAULT_CONTEXT_CATEGORY
from ..common.exceptions import ValidationError
from .crud import context_document_crud
from .schemas import ContextDocumentCreateInternal, ContextDocumentRead

logger = get_logger(__name__)

PDF_NO_TEXT_MARKER = "[PDF file - no extractable text]"
CONTEXT_TYPE_ERROR = "Invalid file type. Only text, markdown, JSON, CSV and PDF files are allowed."


def _read_pdf_text(path: str) -> str:
    with fitz.open(path) as pdf:
        return "\n".join(page.get_text() for page in pdf).strip()


async def extract_content(stored: StoredUpload) -> str:
    """Extract the text used as reference context from a stored file.

    Plain-text formats are decoded as UTF-8, PDFs go through PyMuPDF, and
    anything else is recorded as a placeholder naming its MIME type.

    Raises:
        ValidationError: If a PDF cannot be opened.
    """
    extension = Path(stored.original_name).suffix.lower()

    if extension in CONTEXT_TEXT_EXTENSIONS:
        data = await asyncio.to_thread(Path(stored.path).read_bytes)
        return data.decode("utf-8", errors="replace")

    if extension == ".pdf" or stored.mime_type == "application/pdf":
        try:
            text = await asyncio.to_thread(_read_pdf_text, stored.path)
        except RuntimeError as e:
            raise ValidationError(f"Could not read PDF {stored.original_name}: {e}") from e
        return text or PDF_NO_TEXT_MARKER

    return f"[File content - type: {stored.mime_type}]"


class ContextDocumentService:
    """Service for managing reference documents used to enrich AI cleanup."""

    def __init__(self, upload_store: Optional[UploadStore] = None):
        self._upload_store = upload_store

    @property
    def upload_store(self) -> UploadStore:
        if self._upload_store is None:
            self._upload_store = get_upload_store()
        return self._upload_store

    async def create_context_document(
        self,
        stored: StoredUpload,
        db: AsyncSession,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> ContextDocumentRead:
        """Extract a stored file's content and persist it as a context document.

        Args:
            stored: The uploaded file, already written to disk
            db: Database session
            description: Free-text description, empty by default
            category: Category label, ``"general"`` by default

        Returns:
            The created context document
        """
        content = await extract_content(stored)

        document_internal = ContextDocumentCreateInternal(
            filename=stored.filename,
            original_name=stored.original_name,
            file_path=stored.path,
            mime_type=stored.mime_type,
            size=stored.size,
            content=content,
            description=description or "",
            category=category or DEFAULT_CONTEXT_CATEGORY,
        )
        created = cast(Any, await context_document_crud.create(db=db, object=document_internal))

        logger.info(
            f"Stored context document {stored.original_name}",
            extra={"category": document_internal.category, "content_length": len(content)},
        )
        return ContextDocumentRead.model_validate(created)

    async def upload_context_document(
        self,
        upload: UploadLike,
        db: AsyncSession,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> ContextDocumentRead:
        """Store an uploaded reference file and persist it as a context document.

        The stored file is removed again if the document cannot be created.

        Raises:
            ValidationError: If the upload is missing, of an unsupported type, too large, or unreadable.
        """
        stored = await self.upload_store.save(upload, accept=is_context_upload, type_error=CONTEXT_TYPE_ERROR)
        try:
            return await self.create_context_document(stored, db, description=description, category=category)
        except Exception:
            self.upload_store.delete(stored.path)
            raise

    async def get_context_document(
        self,
        context_document_id: int,
        db: AsyncSession,
    ) -> Optional[ContextDocumentRead]:
        row = await context_document_crud.get(db=db, id=context_document_id)
        if not row:
            return None
        return ContextDocumentRead(**row)

    async def get_context_documents(
        self,
        db: AsyncSession,
        page: int = 1,
        items_per_page: int = 50,
    ) -> dict[str, Any]:
        """Get context documents with pagination, newest upload first.

        Args:
            db: Database session
            page: Page number (1-indexed)
            items_per_page: Number of documents per page

        Returns:
            Paginated response with context documents
        """
        crud_data = await context_document_crud.get_multi(
            db=db,
            offset=(page - 1) * items_per_page,
            limit=items_per_page,
            sort_columns=["upload_date", "id"],
            sort_orders=["desc", "desc"],
        )
        return paginated_response(crud_data, page, items_per_page)

    async def delete_context_document(
        self,
        context_document_id: int,
        db: AsyncSession,
    ) -> bool:
        """Delete a context document and its stored file.

        Returns:
            True if deletion was successful, False if it didn't exist
        """
        document = await self.get_context_document(context_document_id, db)
        if not document:
            return False

        self.upload_store.delete(document.file_path)
        await context_document_crud.delete(db=db, id=context_document_id)
        return True
