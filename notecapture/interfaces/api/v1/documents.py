"""Document API endpoints."""

import os
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse

from ....modules.common.utils.error_handler import handle_exception
from ....modules.document.schemas import DocumentRead, DocumentUpdate
from ....modules.document.services import DocumentService
from ..dependencies import DbSession, get_document_service

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.get(
    "",
    summary="List Documents",
    description="""
    Retrieves a paginated list of processed documents.

    Returns documents ordered by upload time (most recent first).

    - **page**: Page number (1-indexed, default: 1)
    - **items_per_page**: Number of documents per page (default: 50, max: 100)
    """,
    responses={
        200: {"description": "Paginated list of documents"},
    },
)
async def get_documents(
    db: DbSession,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    items_per_page: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 50,
    document_service: DocumentService = Depends(get_document_service),
):
    """Get documents with pagination."""
    try:
        return await document_service.get_documents(db, page, items_per_page)
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.get(
    "/{document_id}",
    summary="Get Document Details",
    description="""
    Retrieves a document by ID, including its raw recognized text, the
    AI-cleaned text and the recognition confidence.
    """,
    responses={
        200: {"description": "Document details"},
        404: {"description": "Document not found"},
    },
)
async def get_document(
    document_id: int,
    db: DbSession,
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentRead:
    """Get a specific document by ID."""
    try:
        result = await document_service.get_document(document_id, db)
        if not result:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
        return result
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.get(
    "/{document_id}/image",
    summary="Get Document Image",
    description="Returns the originally uploaded image of a document.",
    response_class=FileResponse,
    responses={
        200: {"description": "The stored image"},
        404: {"description": "Document or its image not found"},
    },
)
async def get_document_image(
    document_id: int,
    db: DbSession,
    document_service: DocumentService = Depends(get_document_service),
):
    """Serve the stored image of a document."""
    try:
        document = await document_service.get_document(document_id, db)
        if not document:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
        if not document_service.upload_store.exists(document.file_path):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image file not found")
        return FileResponse(
            document.file_path, media_type=document.mime_type, filename=os.path.basename(document.original_name)
        )
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.put(
    "/{document_id}",
    response_model=DocumentRead,
    summary="Update Document Text",
    description="""Edit a document's recognized or cleaned text.

    Only the text fields can be changed; the stored image, recognition
    confidence and AI metadata stay as they were.

    - **document_id**: ID of the document to update
    - **ocr_text**: New raw text (optional)
    - **ai_cleaned_text**: New cleaned text (optional)
    """,
    responses={
        200: {"description": "Document updated successfully"},
        404: {"description": "Document not found"},
        422: {"description": "Invalid update data"},
    },
)
async def update_document(
    document_id: int,
    update_data: DocumentUpdate,
    db: DbSession,
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentRead:
    """Update a document's text."""
    try:
        result = await document_service.update_document(document_id, update_data, db)
        if not result:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
        return result
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.delete(
    "/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Document",
    description="""Delete a document and its stored image.

    Note sets that contain the document keep their entry for it; reading
    such a note set returns the entry with `document` set to null.
    This action cannot be undone.
    """,
    responses={
        204: {"description": "Document deleted successfully"},
        404: {"description": "Document not found"},
    },
)
async def delete_document(
    document_id: int,
    db: DbSession,
    document_service: DocumentService = Depends(get_document_service),
):
    """Delete a document."""
    try:
        success = await document_service.delete_document(document_id, db)
        if not success:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
