"""Tests for note set service."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from notecapture.modules.common.exceptions import DuplicateMemberError, ResourceNotFoundError, ValidationError
from notecapture.modules.document.services import DocumentService
from notecapture.modules.note_set.schemas import NoteSetCreate, NoteSetUpdate
from notecapture.modules.note_set.services import NoteSetService


@pytest.fixture
def document_service(upload_store):
    return DocumentService(upload_store)


@pytest.fixture
def note_set_service(document_service):
    """Create note set service instance."""
    return NoteSetService(document_service)


def _orders(note_set):
    return [(entry.document_id, entry.order) for entry in note_set.documents]


@pytest.mark.asyncio
async def test_create_note_set(
    note_set_service: NoteSetService, db_session: AsyncSession, test_document: dict, test_document_2: dict
):
    """Test creating a note set orders documents by list position."""
    result = await note_set_service.create_note_set(
        NoteSetCreate(name="  Lecture 3  ", document_ids=[test_document_2["id"], test_document["id"]]), db_session
    )

    assert result.name == "Lecture 3"
    assert result.document_count == 2
    assert _orders(result) == [(test_document_2["id"], 0), (test_document["id"], 1)]
    assert result.documents[0].document.original_name == "page-2.png"


@pytest.mark.asyncio
async def test_create_note_set_unknown_document(note_set_service: NoteSetService, db_session: AsyncSession):
    with pytest.raises(ResourceNotFoundError):
        await note_set_service.create_note_set(NoteSetCreate(name="Missing", document_ids=[12345]), db_session)


@pytest.mark.asyncio
async def test_create_note_set_repeated_document(
    note_set_service: NoteSetService, db_session: AsyncSession, test_document: dict
):
    with pytest.raises(ValidationError):
        await note_set_service.create_note_set(
            NoteSetCreate(name="Twice", document_ids=[test_document["id"], test_document["id"]]), db_session
        )


def test_note_set_name_cannot_be_blank():
    with pytest.raises(ValueError):
        NoteSetCreate(name="   ")


@pytest.mark.asyncio
async def test_create_with_sparse_memberships(
    note_set_service: NoteSetService, db_session: AsyncSession, test_document: dict, test_document_2: dict
):
    """Test explicit orders are stored exactly as given."""
    result = await note_set_service.create_with_memberships(
        "Batch", [(test_document["id"], 0), (test_document_2["id"], 3)], db_session
    )

    assert _orders(result) == [(test_document["id"], 0), (test_document_2["id"], 3)]


@pytest.mark.asyncio
async def test_get_note_set_not_found(note_set_service: NoteSetService, db_session: AsyncSession):
    assert await note_set_service.get_note_set(99999, db_session) is None

    with pytest.raises(ResourceNotFoundError):
        await note_set_service.get_note_set_or_raise(99999, db_session)


@pytest.mark.asyncio
async def test_get_note_sets_most_recently_updated_first(
    note_set_service: NoteSetService, db_session: AsyncSession, test_document: dict
):
    first = await note_set_service.create_note_set(NoteSetCreate(name="First"), db_session)
    second = await note_set_service.create_note_set(NoteSetCreate(name="Second"), db_session)

    await note_set_service.add_document(first.id, test_document["id"], db_session)

    result = await note_set_service.get_note_sets(db_session, page=1, items_per_page=10)

    assert result["total_count"] == 2
    assert [note_set["id"] for note_set in result["data"]] == [first.id, second.id]
    assert result["data"][0]["documents"] == [{"document_id": test_document["id"], "order": 0}]
    assert result["data"][0]["document_count"] == 1


@pytest.mark.asyncio
async def test_update_note_set_rename_and_replace(
    note_set_service: NoteSetService,
    db_session: AsyncSession,
    test_document: dict,
    test_document_2: dict,
    test_document_3: dict,
):
    created = await note_set_service.create_note_set(
        NoteSetCreate(name="Draft", document_ids=[test_document["id"], test_document_2["id"]]), db_session
    )

    result = await note_set_service.update_note_set(
        created.id,
        NoteSetUpdate(name="Final", document_ids=[test_document_3["id"], test_document["id"]]),
        db_session,
    )

    assert result.name == "Final"
    assert _orders(result) == [(test_document_3["id"], 0), (test_document["id"], 1)]
    assert result.updated_at >= created.updated_at


@pytest.mark.asyncio
async def test_update_note_set_not_found(note_set_service: NoteSetService, db_session: AsyncSession):
    with pytest.raises(ResourceNotFoundError):
        await note_set_service.update_note_set(99999, NoteSetUpdate(name="Nope"), db_session)


@pytest.mark.asyncio
async def test_add_document_appends_at_end(
    note_set_service: NoteSetService, db_session: AsyncSession, test_document: dict, test_document_2: dict
):
    created = await note_set_service.create_note_set(
        NoteSetCreate(name="Notes", document_ids=[test_document["id"]]), db_session
    )

    result = await note_set_service.add_document(created.id, test_document_2["id"], db_session)

    assert _orders(result) == [(test_document["id"], 0), (test_document_2["id"], 1)]


@pytest.mark.asyncio
async def test_add_duplicate_document_is_rejected(
    note_set_service: NoteSetService, db_session: AsyncSession, test_document: dict, test_document_2: dict
):
    """Test appending an existing member raises and leaves the list unchanged."""
    created = await note_set_service.create_note_set(
        NoteSetCreate(name="Notes", document_ids=[test_document["id"], test_document_2["id"]]), db_session
    )

    with pytest.raises(DuplicateMemberError):
        await note_set_service.add_document(created.id, test_document["id"], db_session)

    unchanged = await note_set_service.get_note_set(created.id, db_session)
    assert _orders(unchanged) == _orders(created)


@pytest.mark.asyncio
async def test_add_unknown_document(note_set_service: NoteSetService, db_session: AsyncSession):
    created = await note_set_service.create_note_set(NoteSetCreate(name="Notes"), db_session)

    with pytest.raises(ResourceNotFoundError):
        await note_set_service.add_document(created.id, 4242, db_session)


@pytest.mark.asyncio
async def test_remove_document_repacks_orders(
    note_set_service: NoteSetService,
    db_session: AsyncSession,
    test_document: dict,
    test_document_2: dict,
    test_document_3: dict,
):
    """Test removing a member leaves a dense 0..M-1 sequence."""
    created = await note_set_service.create_with_memberships(
        "Sparse batch",
        [(test_document["id"], 0), (test_document_2["id"], 2), (test_document_3["id"], 4)],
        db_session,
    )

    result = await note_set_service.remove_document(created.id, test_document_2["id"], db_session)

    assert _orders(result) == [(test_document["id"], 0), (test_document_3["id"], 1)]


@pytest.mark.asyncio
async def test_remove_document_not_a_member(
    note_set_service: NoteSetService, db_session: AsyncSession, test_document: dict
):
    created = await note_set_service.create_note_set(NoteSetCreate(name="Empty"), db_session)

    with pytest.raises(ResourceNotFoundError):
        await note_set_service.remove_document(created.id, test_document["id"], db_session)


@pytest.mark.asyncio
async def test_delete_note_set_keeps_documents(
    note_set_service: NoteSetService,
    document_service: DocumentService,
    db_session: AsyncSession,
    test_document: dict,
):
    created = await note_set_service.create_note_set(
        NoteSetCreate(name="Temporary", document_ids=[test_document["id"]]), db_session
    )

    assert await note_set_service.delete_note_set(created.id, db_session) is True

    assert await note_set_service.get_note_set(created.id, db_session) is None
    assert await document_service.get_document(test_document["id"], db_session) is not None


@pytest.mark.asyncio
async def test_deleted_document_leaves_dangling_member(
    note_set_service: NoteSetService,
    document_service: DocumentService,
    db_session: AsyncSession,
    test_document: dict,
    test_document_2: dict,
):
    created = await note_set_service.create_note_set(
        NoteSetCreate(name="Notes", document_ids=[test_document["id"], test_document_2["id"]]), db_session
    )

    await document_service.delete_document(test_document["id"], db_session)

    result = await note_set_service.get_note_set(created.id, db_session)
    assert result.document_count == 2
    assert result.documents[0].document_id == test_document["id"]
    assert result.documents[0].document is None
    assert result.documents[1].document.id == test_document_2["id"]

    listed = await document_service.get_documents(db_session)
    assert [doc["id"] for doc in listed["data"]] == [test_document_2["id"]]
