"""Upload API endpoints: single-image processing and batch ingestion."""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from ....infrastructure.config import get_settings
from ....modules.common.exceptions import ValidationError
from ....modules.common.utils.error_handler import handle_exception
from ....modules.document.schemas import DocumentSummary
from ....modules.ingestion.schemas import BatchIngestionResult, DocumentUploadResponse
from ....modules.ingestion.services import IngestionService
from ..dependencies import DbSession, get_ingestion_service

router = APIRouter(tags=["Uploads"])


@router.post(
    "/upload",
    summary="Upload and Process Image",
    description="""
    Uploads one image and runs it through the processing pipeline.

    The image is read by the text recognition service while its layout is
    analyzed, then the recognized text is cleaned up by the AI model using
    the most recent context documents as reference.

    - **file**: Image file (JPEG, PNG, GIF or BMP, up to 10 MB)

    If AI cleanup is unavailable the document is still stored with its raw
    text and `ai_processed` set to false.
    """,
    responses={
        200: {"description": "Image processed and document stored"},
        400: {"description": "Missing file, unsupported type or file too large"},
        500: {"description": "Processing failed"},
        502: {"description": "Text recognition service returned an error"},
        503: {"description": "Text recognition service not configured"},
        504: {"description": "Text recognition timed out"},
    },
)
async def upload_file(
    db: DbSession,
    file: Annotated[Optional[UploadFile], File(description="Image to process")] = None,
    service: IngestionService = Depends(get_ingestion_service),
) -> DocumentUploadResponse:
    """Process a single uploaded image into a document."""
    try:
        document = await service.ingest_upload(file, db)  # type: ignore[arg-type]
        return DocumentUploadResponse(document=DocumentSummary.from_document(document))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.post(
    "/upload-batch",
    summary="Upload a Batch of Images",
    description="""
    Processes several images in upload order and groups them into a new note set.

    Files are processed one at a time. A file that fails is reported in
    `errors` and skipped; the others are still stored. Each stored document
    keeps its position in the upload as its order in the note set, so a
    failed file leaves a gap.

    - **files**: Up to 20 image files
    - **noteSetName**: Optional name; defaults to `Note Set YYYY-MM-DD HH:MM`

    When no file succeeds no note set is created and `note_set` is null.
    """,
    responses={
        200: {"description": "Batch processed, possibly with per-file errors"},
        400: {"description": "No files or too many files"},
    },
)
async def upload_batch(
    db: DbSession,
    files: Annotated[Optional[List[UploadFile]], File(description="Images to process, in order")] = None,
    note_set_name: Annotated[Optional[str], Form(alias="noteSetName", description="Name of the note set")] = None,
    service: IngestionService = Depends(get_ingestion_service),
) -> BatchIngestionResult:
    """Process a batch of uploaded images into a note set."""
    max_files = get_settings().MAX_BATCH_FILES
    if not files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No files uploaded")
    if len(files) > max_files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Too many files; at most {max_files} per batch"
        )

    try:
        return await service.ingest_batch(files, db, note_set_name=note_set_name)
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
