"""Document management service."""

from typing import Any, Dict, Iterable, List, Optional, cast

from fastcrud.paginated.response import paginated_response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.logging import get_logger
from ...infrastructure.storage import UploadStore, get_upload_store
from .crud import document_crud
from .models import Document
from .schemas import DocumentCreateInternal, DocumentRead, DocumentUpdate

logger = get_logger(__name__)


class DocumentService:
    """Service for managing processed documents.

    Documents are created by the ingestion pipeline; this service handles
    reading them, editing their text fields and deleting them together with
    their stored image. Deleting a document never touches the note sets that
    reference it.
    """

    def __init__(self, upload_store: Optional[UploadStore] = None):
        self._upload_store = upload_store

    @property
    def upload_store(self) -> UploadStore:
        if self._upload_store is None:
            self._upload_store = get_upload_store()
        return self._upload_store

    async def create_document(
        self,
        document_data: DocumentCreateInternal,
        db: AsyncSession,
    ) -> DocumentRead:
        """Persist a processed document.

        Args:
            document_data: Recognition and cleanup results for one file
            db: Database session

        Returns:
            The created document
        """
        created_document = cast(Any, await document_crud.create(db=db, object=document_data))
        return DocumentRead.model_validate(created_document)

    async def get_document(
        self,
        document_id: int,
        db: AsyncSession,
    ) -> Optional[DocumentRead]:
        """Get a specific document.

        Args:
            document_id: Document ID to retrieve
            db: Database session

        Returns:
            Document data, or None if it doesn't exist
        """
        row = await document_crud.get(db=db, id=document_id)
        if not row:
            return None
        return DocumentRead(**row)

    async def get_documents(
        self,
        db: AsyncSession,
        page: int = 1,
        items_per_page: int = 50,
    ) -> dict[str, Any]:
        """Get documents with pagination, most recent upload first.

        Args:
            db: Database session
            page: Page number (1-indexed)
            items_per_page: Number of documents per page

        Returns:
            Paginated response with documents
        """
        crud_data = await document_crud.get_multi(
            db=db,
            offset=(page - 1) * items_per_page,
            limit=items_per_page,
            sort_columns=["upload_date", "id"],
            sort_orders=["desc", "desc"],
        )
        return paginated_response(crud_data, page, items_per_page)

    async def get_documents_by_ids(
        self,
        document_ids: Iterable[int],
        db: AsyncSession,
    ) -> Dict[int, DocumentRead]:
        """Load several documents at once, keyed by ID. Missing IDs are simply absent."""
        ids = list(set(document_ids))
        if not ids:
            return {}

        result = await db.execute(select(Document).where(Document.id.in_(ids)))
        return {document.id: DocumentRead.model_validate(document) for document in result.scalars()}

    async def find_missing_ids(
        self,
        document_ids: Iterable[int],
        db: AsyncSession,
    ) -> List[int]:
        """Return the IDs from ``document_ids`` that have no document, in input order."""
        ids = list(document_ids)
        if not ids:
            return []

        result = await db.execute(select(Document.id).where(Document.id.in_(set(ids))))
        existing = set(result.scalars())
        return [document_id for document_id in ids if document_id not in existing]

    async def update_document(
        self,
        document_id: int,
        update_data: DocumentUpdate,
        db: AsyncSession,
    ) -> Optional[DocumentRead]:
        """Edit a document's recognized or cleaned text.

        Args:
            document_id: Document ID to update
            update_data: Fields to change
            db: Database session

        Returns:
            Updated document data, or None if it doesn't exist
        """
        if not await document_crud.exists(db=db, id=document_id):
            return None

        update_dict = update_data.model_dump(exclude_unset=True)
        if update_dict:
            await document_crud.update(db=db, object=update_dict, id=document_id)

        return await self.get_document(document_id, db)

    async def delete_document(
        self,
        document_id: int,
        db: AsyncSession,
    ) -> bool:
        """Delete a document and its stored image.

        Note sets referencing the document keep their membership entries.

        Args:
            document_id: Document ID to delete
            db: Database session

        Returns:
            True if deletion was successful
        """
        document = await self.get_document(document_id, db)
        if not document:
            return False

        self.upload_store.delete(document.file_path)
        await document_crud.delete(db=db, id=document_id)

        logger.info(f"Deleted document {document_id}", extra={"original_name": document.original_name})
        return True
