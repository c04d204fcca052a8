"""Upload ingestion: the single-item pipeline and the batch orchestrator."""

import asyncio
from datetime import UTC, datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.azure import LayoutAnalysisClient, TextRecognitionClient
from ...infrastructure.llm import TextCleanupClient
from ...infrastructure.logging import get_logger
from ...infrastructure.storage import StoredUpload, UploadStore, get_upload_store
from ...infrastructure.storage.uploads import UploadLike
from ..common.exceptions import DomainError, IngestionFailedError
from ..context.retriever import ContextRetriever
from ..document.schemas import DocumentCreateInternal, DocumentRead
from ..document.services import DocumentService
from ..note_set.services import NoteSetService
from .schemas import BatchIngestionError, BatchIngestionResult

logger = get_logger(__name__)


def default_note_set_name(now: Optional[datetime] = None) -> str:
    """``Note Set YYYY-MM-DD HH:MM`` in UTC."""
    now = now or datetime.now(UTC)
    return f"Note Set {now:%Y-%m-%d %H:%M}"


class IngestionService:
    """Turns uploaded images into documents and groups batches into note sets.

    One file runs through: text recognition and layout analysis
    concurrently, context retrieval, AI cleanup, then persistence.
    Recognition and persistence are required; layout, context and cleanup
    degrade to fallbacks and never stop a file from being stored.

    Batches are processed one file at a time in upload order. A failing file
    is recorded and skipped; survivors keep their upload index as their
    order in the resulting note set, so orders can have gaps.
    """

    def __init__(
        self,
        recognizer: TextRecognitionClient,
        layout_analyzer: LayoutAnalysisClient,
        cleanup_client: TextCleanupClient,
        context_retriever: Optional[ContextRetriever] = None,
        document_service: Optional[DocumentService] = None,
        note_set_service: Optional[NoteSetService] = None,
        upload_store: Optional[UploadStore] = None,
        context_limit: int = 3,
    ):
        self.recognizer = recognizer
        self.layout_analyzer = layout_analyzer
        self.cleanup_client = cleanup_client
        self.context_retriever = context_retriever or ContextRetriever(limit=context_limit)
        self.upload_store = upload_store or get_upload_store()
        self.document_service = document_service or DocumentService(self.upload_store)
        self.note_set_service = note_set_service or NoteSetService(self.document_service)
        self.context_limit = context_limit

    async def ingest_file(self, stored: StoredUpload, db: AsyncSession) -> DocumentRead:
        """Run the full pipeline over one stored image and persist the document.

        The stored file is left in place on failure; deleting it is up to
        the caller.

        Raises:
            IngestionFailedError: If recognition or persistence fails.
        """
        try:
            recognition, layout = await asyncio.gather(
                self.recognizer.recognize(stored.path),
                self.layout_analyzer.analyze(stored.path),
            )
            if not layout.ok:
                logger.info(f"Continuing without layout data: {layout.error}")

            context = await self.context_retriever.build_context_block(
                db, hint=recognition.text, limit=self.context_limit
            )

            cleanup = await self.cleanup_client.clean(
                recognition.text,
                image_path=stored.path,
                context_block=context.value,
                layout=layout.value,
            )
            if not cleanup.ok:
                logger.info(f"AI post-processing skipped or failed: {cleanup.error}")

            document = await self.document_service.create_document(
                DocumentCreateInternal(
                    filename=stored.filename,
                    original_name=stored.original_name,
                    file_path=stored.path,
                    mime_type=stored.mime_type,
                    size=stored.size,
                    ocr_text=recognition.text,
                    ocr_confidence=recognition.confidence,
                    ai_cleaned_text=cleanup.value.text,
                    ai_processed=cleanup.ok,
                    ai_model=cleanup.value.model,
                ),
                db,
            )
        except (DomainError, SQLAlchemyError, OSError) as e:
            await db.rollback()
            raise IngestionFailedError(stored.original_name, str(e)) from e

        logger.info(
            f"Processed {stored.original_name} into document {document.id}",
            extra={"ocr_confidence": document.ocr_confidence, "ai_processed": document.ai_processed},
        )
        return document

    async def ingest_upload(self, upload: UploadLike, db: AsyncSession) -> DocumentRead:
        """Store one uploaded image and run it through the pipeline.

        Raises:
            ValidationError: If the upload is missing, not an image, or too large.
            IngestionFailedError: If processing fails.

        The stored file is removed whenever processing raises.
        """
        stored = await self.upload_store.save(upload)
        try:
            return await self.ingest_file(stored, db)
        except Exception:
            self.upload_store.delete(stored.path)
            raise

    async def ingest_batch(
        self,
        uploads: Sequence[UploadLike],
        db: AsyncSession,
        note_set_name: Optional[str] = None,
    ) -> BatchIngestionResult:
        """Process uploads in order and collect the successes into one note set.

        Args:
            uploads: Files in the order the user submitted them
            db: Database session
            note_set_name: Name for the note set; a dated default when blank

        Returns:
            Counts, per-file errors, and the note set when at least one file succeeded
        """
        name = (note_set_name or "").strip() or default_note_set_name()
        memberships: List[Tuple[int, int]] = []
        errors: List[BatchIngestionError] = []

        for index, upload in enumerate(uploads):
            filename = upload.filename or f"file {index + 1}"
            stored: Optional[StoredUpload] = None

            try:
                stored = await self.upload_store.save(upload)
                document = await self.ingest_file(stored, db)
            except Exception as e:
                reason = e.reason if isinstance(e, IngestionFailedError) else str(e)
                logger.warning(f"Batch item {index} ({filename}) failed: {reason}")
                if stored is not None:
                    self.upload_store.delete(stored.path)
                await db.rollback()
                errors.append(BatchIngestionError(filename=filename, reason=reason))
                continue

            memberships.append((document.id, index))

        note_set = None
        if memberships:
            note_set = await self.note_set_service.create_with_memberships(name, memberships, db)

        logger.info(
            f"Batch finished: {len(memberships)} processed, {len(errors)} failed",
            extra={"processed_count": len(memberships), "error_count": len(errors)},
        )
        return BatchIngestionResult(
            note_set=note_set,
            processed_count=len(memberships),
            error_count=len(errors),
            errors=errors,
        )
