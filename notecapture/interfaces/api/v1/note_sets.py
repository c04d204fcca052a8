"""Note set API endpoints."""

from typing import Annotated, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ....modules.common.utils.error_handler import handle_exception
from ....modules.note_set.schemas import NoteSetAddDocument, NoteSetCreate, NoteSetDetail, NoteSetUpdate
from ....modules.note_set.services import NoteSetService
from ..dependencies import DbSession, get_note_set_service

router = APIRouter(prefix="/notesets", tags=["Note Sets"])


def _raise_http(e: Exception) -> NoReturn:
    http_exc = handle_exception(e)
    if http_exc:
        raise http_exc
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.get(
    "",
    summary="List Note Sets",
    description="""
    Retrieves a paginated list of note sets, most recently updated first.

    Each note set lists its membership entries (`document_id` and `order`)
    without resolving the documents.

    - **page**: Page number (1-indexed, default: 1)
    - **items_per_page**: Number of note sets per page (default: 50, max: 100)
    """,
    responses={
        200: {"description": "Paginated list of note sets"},
    },
)
async def get_note_sets(
    db: DbSession,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    items_per_page: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 50,
    note_set_service: NoteSetService = Depends(get_note_set_service),
):
    """Get note sets with pagination."""
    try:
        return await note_set_service.get_note_sets(db, page, items_per_page)
    except Exception as e:
        _raise_http(e)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create Note Set",
    description="""
    Creates a note set from documents that already exist.

    - **name**: Name of the note set (surrounding whitespace is trimmed)
    - **document_ids**: Documents in display order; each ID at most once
    """,
    responses={
        201: {"description": "Note set created"},
        404: {"description": "A document does not exist"},
        422: {"description": "Empty name or repeated document IDs"},
    },
)
async def create_note_set(
    note_set_data: NoteSetCreate,
    db: DbSession,
    note_set_service: NoteSetService = Depends(get_note_set_service),
) -> NoteSetDetail:
    """Create a new note set."""
    try:
        return await note_set_service.create_note_set(note_set_data, db)
    except Exception as e:
        _raise_http(e)


@router.get(
    "/{note_set_id}",
    summary="Get Note Set",
    description="""
    Retrieves a note set with its member documents resolved, in order.

    Entries whose document has been deleted are returned with `document`
    set to null.
    """,
    responses={
        200: {"description": "Note set with documents"},
        404: {"description": "Note set not found"},
    },
)
async def get_note_set(
    note_set_id: int,
    db: DbSession,
    note_set_service: NoteSetService = Depends(get_note_set_service),
) -> NoteSetDetail:
    """Get a specific note set by ID."""
    try:
        result = await note_set_service.get_note_set(note_set_id, db)
        if not result:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note set not found")
        return result
    except Exception as e:
        _raise_http(e)


@router.put(
    "/{note_set_id}",
    summary="Update Note Set",
    description="""
    Renames a note set and/or replaces its documents wholesale.

    - **name**: New name (optional)
    - **document_ids**: New full list of documents in display order (optional)
    """,
    responses={
        200: {"description": "Note set updated"},
        404: {"description": "Note set or document not found"},
        422: {"description": "Empty name or repeated document IDs"},
    },
)
async def update_note_set(
    note_set_id: int,
    update_data: NoteSetUpdate,
    db: DbSession,
    note_set_service: NoteSetService = Depends(get_note_set_service),
) -> NoteSetDetail:
    """Update a note set."""
    try:
        return await note_set_service.update_note_set(note_set_id, update_data, db)
    except Exception as e:
        _raise_http(e)


@router.post(
    "/{note_set_id}/documents",
    summary="Add Document to Note Set",
    description="Appends an existing document to the end of a note set.",
    responses={
        200: {"description": "Document added"},
        404: {"description": "Note set or document not found"},
        409: {"description": "Document is already in the note set"},
    },
)
async def add_document(
    note_set_id: int,
    payload: NoteSetAddDocument,
    db: DbSession,
    note_set_service: NoteSetService = Depends(get_note_set_service),
) -> NoteSetDetail:
    """Append a document to a note set."""
    try:
        return await note_set_service.add_document(note_set_id, payload.document_id, db)
    except Exception as e:
        _raise_http(e)


@router.delete(
    "/{note_set_id}/documents/{document_id}",
    summary="Remove Document from Note Set",
    description="""
    Removes a document from a note set and renumbers the remaining entries
    `0..n-1`. The document itself is not deleted.
    """,
    responses={
        200: {"description": "Document removed"},
        404: {"description": "Note set not found or document not in it"},
    },
)
async def remove_document(
    note_set_id: int,
    document_id: int,
    db: DbSession,
    note_set_service: NoteSetService = Depends(get_note_set_service),
) -> NoteSetDetail:
    """Remove a document from a note set."""
    try:
        return await note_set_service.remove_document(note_set_id, document_id, db)
    except Exception as e:
        _raise_http(e)


@router.delete(
    "/{note_set_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Note Set",
    description="Deletes a note set. Its documents are kept.",
    responses={
        204: {"description": "Note set deleted"},
        404: {"description": "Note set not found"},
    },
)
async def delete_note_set(
    note_set_id: int,
    db: DbSession,
    note_set_service: NoteSetService = Depends(get_note_set_service),
):
    """Delete a note set."""
    try:
        success = await note_set_service.delete_note_set(note_set_id, db)
        if not success:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note set not found")
    except Exception as e:
        _raise_http(e)
