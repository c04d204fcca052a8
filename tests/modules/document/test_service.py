"""Tests for document service."""

import os

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from notecapture.modules.document.schemas import DocumentCreateInternal, DocumentUpdate
from notecapture.modules.document.services import DocumentService


@pytest.fixture
def document_service(upload_store):
    """Create document service instance."""
    return DocumentService(upload_store)


@pytest.mark.asyncio
async def test_create_document(document_service: DocumentService, db_session: AsyncSession):
    """Test persisting a processed document."""
    document_data = DocumentCreateInternal(
        filename="1700000000000-123.png",
        original_name="whiteboard.png",
        file_path="/tmp/1700000000000-123.png",
        mime_type="image/png",
        size=2048,
        ocr_text="Sprint goals",
        ocr_confidence=97.5,
        ai_cleaned_text="# Sprint goals",
        ai_processed=True,
        ai_model="gpt-4o",
    )

    result = await document_service.create_document(document_data=document_data, db=db_session)

    assert result.id is not None
    assert result.original_name == "whiteboard.png"
    assert result.ocr_confidence == 97.5
    assert result.ai_processed is True
    assert result.upload_date is not None
    assert result.created_at is not None


@pytest.mark.asyncio
async def test_get_document(document_service: DocumentService, db_session: AsyncSession, test_document: dict):
    """Test getting a specific document."""
    result = await document_service.get_document(document_id=test_document["id"], db=db_session)

    assert result.id == test_document["id"]
    assert result.ocr_text == test_document["ocr_text"]
    assert result.ai_cleaned_text == test_document["ai_cleaned_text"]


@pytest.mark.asyncio
async def test_get_document_not_found(document_service: DocumentService, db_session: AsyncSession):
    """Test getting non-existent document."""
    result = await document_service.get_document(document_id=99999, db=db_session)
    assert result is None


@pytest.mark.asyncio
async def test_get_documents_newest_first(
    document_service: DocumentService, db_session: AsyncSession, test_document: dict, test_document_2: dict
):
    """Test getting all documents with pagination, newest upload first."""
    result = await document_service.get_documents(db=db_session, page=1, items_per_page=10)

    assert result["total_count"] == 2
    assert [doc["id"] for doc in result["data"]] == [test_document_2["id"], test_document["id"]]
    assert result["has_more"] is False


@pytest.mark.asyncio
async def test_get_documents_pagination(
    document_service: DocumentService, db_session: AsyncSession, test_document: dict, test_document_2: dict
):
    result = await document_service.get_documents(db=db_session, page=1, items_per_page=1)

    assert len(result["data"]) == 1
    assert result["has_more"] is True


@pytest.mark.asyncio
async def test_update_document_text(document_service: DocumentService, db_session: AsyncSession, test_document: dict):
    """Test editing the cleaned text leaves the raw text alone."""
    result = await document_service.update_document(
        test_document["id"], DocumentUpdate(ai_cleaned_text="# Edited by hand"), db_session
    )

    assert result.ai_cleaned_text == "# Edited by hand"
    assert result.ocr_text == test_document["ocr_text"]


@pytest.mark.asyncio
async def test_update_document_not_found(document_service: DocumentService, db_session: AsyncSession):
    result = await document_service.update_document(99999, DocumentUpdate(ocr_text="x"), db_session)
    assert result is None


@pytest.mark.asyncio
async def test_delete_document_removes_file(
    document_service: DocumentService, db_session: AsyncSession, test_document: dict
):
    """Test deleting a document also removes its stored image."""
    assert os.path.exists(test_document["file_path"])

    assert await document_service.delete_document(test_document["id"], db_session) is True

    assert await document_service.get_document(test_document["id"], db_session) is None
    assert not os.path.exists(test_document["file_path"])


@pytest.mark.asyncio
async def test_delete_document_not_found(document_service: DocumentService, db_session: AsyncSession):
    assert await document_service.delete_document(99999, db_session) is False


@pytest.mark.asyncio
async def test_find_missing_ids_keeps_input_order(
    document_service: DocumentService, db_session: AsyncSession, test_document: dict
):
    missing = await document_service.find_missing_ids([500, test_document["id"], 400], db_session)
    assert missing == [500, 400]


@pytest.mark.asyncio
async def test_get_documents_by_ids(
    document_service: DocumentService, db_session: AsyncSession, test_document: dict, test_document_2: dict
):
    result = await document_service.get_documents_by_ids([test_document["id"], test_document_2["id"], 404], db_session)

    assert set(result) == {test_document["id"], test_document_2["id"]}
    assert result[test_document_2["id"]].original_name == "page-2.png"
