"""FastAPI dependencies for use in API endpoints."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.azure import LayoutAnalysisClient, TextRecognitionClient
from ...infrastructure.config import get_settings
from ...infrastructure.database import async_session
from ...infrastructure.llm import TextCleanupClient
from ...infrastructure.storage import UploadStore, get_upload_store
from ...modules.context.retriever import ContextRetriever
from ...modules.context.services import ContextDocumentService
from ...modules.document.services import DocumentService
from ...modules.ingestion.services import IngestionService
from ...modules.note_set.services import NoteSetService

DbSession = Annotated[AsyncSession, Depends(async_session)]


@lru_cache()
def get_text_recognition_client() -> TextRecognitionClient:
    """Dependency for providing the configured TextRecognitionClient."""
    return TextRecognitionClient.from_settings()


@lru_cache()
def get_layout_analysis_client() -> LayoutAnalysisClient:
    """Dependency for providing the configured LayoutAnalysisClient."""
    return LayoutAnalysisClient.from_settings()


@lru_cache()
def get_text_cleanup_client() -> TextCleanupClient:
    """Dependency for providing the configured TextCleanupClient."""
    return TextCleanupClient.from_settings()


def get_context_retriever() -> ContextRetriever:
    return ContextRetriever(limit=get_settings().CONTEXT_DOCUMENT_LIMIT)


def get_document_service(upload_store: UploadStore = Depends(get_upload_store)) -> DocumentService:
    """Dependency for providing a DocumentService instance."""
    return DocumentService(upload_store)


def get_note_set_service(document_service: DocumentService = Depends(get_document_service)) -> NoteSetService:
    """Dependency for providing a NoteSetService instance."""
    return NoteSetService(document_service)


def get_context_document_service(upload_store: UploadStore = Depends(get_upload_store)) -> ContextDocumentService:
    """Dependency for providing a ContextDocumentService instance."""
    return ContextDocumentService(upload_store)


def get_ingestion_service(
    recognizer: TextRecognitionClient = Depends(get_text_recognition_client),
    layout_analyzer: LayoutAnalysisClient = Depends(get_layout_analysis_client),
    cleanup_client: TextCleanupClient = Depends(get_text_cleanup_client),
    context_retriever: ContextRetriever = Depends(get_context_retriever),
    document_service: DocumentService = Depends(get_document_service),
    note_set_service: NoteSetService = Depends(get_note_set_service),
    upload_store: UploadStore = Depends(get_upload_store),
) -> IngestionService:
    """Dependency for providing an IngestionService wired to the configured clients."""
    return IngestionService(
        recognizer=recognizer,
        layout_analyzer=layout_analyzer,
        cleanup_client=cleanup_client,
        context_retriever=context_retriever,
        document_service=document_service,
        note_set_service=note_set_service,
        upload_store=upload_store,
        context_limit=context_retriever.limit,
    )
