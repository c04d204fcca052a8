"""Context document API endpoints."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from ....modules.common.exceptions import ValidationError
from ....modules.common.utils.error_handler import handle_exception
from ....modules.context.schemas import ContextDocumentSummary, ContextUploadResponse
from ....modules.context.services import ContextDocumentService
from ..dependencies import DbSession, get_context_document_service

router = APIRouter(prefix="/context", tags=["Context"])


@router.get(
    "",
    summary="List Context Documents",
    description="""
    Retrieves reference documents, newest upload first.

    The most recent ones are injected into the AI cleanup prompt of every
    processed image.
    """,
    responses={
        200: {"description": "Paginated list of context documents"},
    },
)
async def get_context_documents(
    db: DbSession,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    items_per_page: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 50,
    service: ContextDocumentService = Depends(get_context_document_service),
):
    """Get context documents with pagination."""
    try:
        return await service.get_context_documents(db, page, items_per_page)
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.post(
    "",
    summary="Upload Context Document",
    description="""
    Uploads a reference document whose text helps the AI fix domain terms.

    - **file**: Text, Markdown, JSON, CSV or PDF file (up to 10 MB)
    - **description**: Optional description shown to the model
    - **category**: Optional category label (default: `general`)

    PDF text is extracted when the PDF has a text layer.
    """,
    responses={
        200: {"description": "Context document stored"},
        400: {"description": "Missing file, unsupported type, file too large or unreadable PDF"},
    },
)
async def upload_context_document(
    db: DbSession,
    file: Annotated[Optional[UploadFile], File(description="Reference file")] = None,
    description: Annotated[Optional[str], Form()] = None,
    category: Annotated[Optional[str], Form(max_length=100)] = None,
    service: ContextDocumentService = Depends(get_context_document_service),
) -> ContextUploadResponse:
    """Store a context document."""
    try:
        document = await service.upload_context_document(
            file, db, description=description, category=category  # type: ignore[arg-type]
        )
        return ContextUploadResponse(context_document=ContextDocumentSummary.from_context_document(document))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.delete(
    "/{context_document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Context Document",
    description="Deletes a context document and its stored file.",
    responses={
        204: {"description": "Context document deleted"},
        404: {"description": "Context document not found"},
    },
)
async def delete_context_document(
    context_document_id: int,
    db: DbSession,
    service: ContextDocumentService = Depends(get_context_document_service),
):
    """Delete a context document."""
    try:
        success = await service.delete_context_document(context_document_id, db)
        if not success:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Context document not found")
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
