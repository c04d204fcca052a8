"""Test configuration and fixtures for the note capture service."""

import base64
import os
import tempfile
from io import BytesIO
from pathlib import Path
from typing import List, Optional

# Settings are read at import time, so the environment comes first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "local"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="notecapture-test-uploads-")
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
for _name in (
    "AZURE_VISION_KEY",
    "AZURE_VISION_ENDPOINT",
    "AZURE_DOCUMENT_INTELLIGENCE_KEY",
    "AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT",
    "AZURE_OPENAI_API_KEY",
    "AZURE_OPENAI_ENDPOINT",
):
    os.environ[_name] = ""

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from starlette.datastructures import Headers, UploadFile  # noqa: E402

from notecapture.infrastructure.azure.schemas import RecognitionResult  # noqa: E402
from notecapture.infrastructure.database.session import Base, async_session  # noqa: E402
from notecapture.infrastructure.llm.cleanup import CleanedText  # noqa: E402
from notecapture.infrastructure.logging import configure_testing_logging  # noqa: E402
from notecapture.infrastructure.storage import UploadStore, get_upload_store  # noqa: E402
from notecapture.interfaces.api.dependencies import (  # noqa: E402
    get_layout_analysis_client,
    get_text_cleanup_client,
    get_text_recognition_client,
)
from notecapture.interfaces.main import app  # noqa: E402
from notecapture.modules.common.exceptions import RecognitionFailedError  # noqa: E402
from notecapture.modules.common.results import AdvisoryResult  # noqa: E402
from notecapture.modules.context.models import ContextDocument  # noqa: E402
from notecapture.modules.document.models import Document  # noqa: E402
from notecapture.modules.ingestion.services import IngestionService  # noqa: E402

configure_testing_logging()

TEST_DATABASE_URL = "sqlite+aiosqlite://"

PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)
CORRUPT_IMAGE = b"corrupt image data"


class FakeRecognizer:
    """Recognizes every image except those whose bytes are ``CORRUPT_IMAGE``."""

    def __init__(self, text: str = "Meeting notes\nAction items", confidence: float = 91.25):
        self.text = text
        self.confidence = confidence
        self.calls: List[str] = []

    async def recognize(self, image_path: str) -> RecognitionResult:
        self.calls.append(image_path)
        if Path(image_path).read_bytes() == CORRUPT_IMAGE:
            raise RecognitionFailedError("OCR processing failed: Bad image")
        return RecognitionResult(text=self.text, confidence=self.confidence)


class FakeLayoutAnalyzer:
    async def analyze(self, image_path: str) -> AdvisoryResult:
        return AdvisoryResult.fallback(None, "Layout analysis not configured")


class FakeCleanupClient:
    """Wraps the text in a heading, or falls back when ``fail`` is set."""

    def __init__(self, fail: bool = False, model: str = "gpt-4o-test"):
        self.fail = fail
        self.model = model
        self.context_blocks: List[str] = []

    async def clean(
        self,
        ocr_text: str,
        image_path: Optional[str] = None,
        context_block: str = "",
        layout=None,
    ) -> AdvisoryResult[CleanedText]:
        self.context_blocks.append(context_block)
        if self.fail:
            return AdvisoryResult.fallback(CleanedText(text=ocr_text, model=None), "Azure OpenAI not configured")
        return AdvisoryResult.success(CleanedText(text=f"# {ocr_text}", model=self.model))


def make_upload(filename: str, data: bytes = PNG_BYTES, content_type: str = "image/png") -> UploadFile:
    return UploadFile(file=BytesIO(data), filename=filename, headers=Headers({"content-type": content_type}))


@pytest_asyncio.fixture(scope="function")
async def test_db_engine():
    """Create an in-memory SQLite engine shared by every session of one test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_db_engine):
    """Create a test database session."""
    session_factory = async_sessionmaker(test_db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def upload_store(tmp_path) -> UploadStore:
    return UploadStore(tmp_path / "uploads", max_size=1024 * 1024)


@pytest.fixture
def fake_recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def fake_layout() -> FakeLayoutAnalyzer:
    return FakeLayoutAnalyzer()


@pytest.fixture
def fake_cleanup() -> FakeCleanupClient:
    return FakeCleanupClient()


@pytest.fixture
def ingestion_service(upload_store, fake_recognizer, fake_layout, fake_cleanup) -> IngestionService:
    return IngestionService(
        recognizer=fake_recognizer,  # type: ignore[arg-type]
        layout_analyzer=fake_layout,  # type: ignore[arg-type]
        cleanup_client=fake_cleanup,  # type: ignore[arg-type]
        upload_store=upload_store,
    )


@pytest_asyncio.fixture(scope="function")
async def client(test_db_engine, upload_store, fake_recognizer, fake_layout, fake_cleanup):
    """Create a test client whose requests each get their own session on the test engine."""
    app.dependency_overrides = {}

    test_session_factory = async_sessionmaker(test_db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        """Each request gets its own isolated database session."""
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[async_session] = override_get_db
    app.dependency_overrides[get_upload_store] = lambda: upload_store
    app.dependency_overrides[get_text_recognition_client] = lambda: fake_recognizer
    app.dependency_overrides[get_layout_analysis_client] = lambda: fake_layout
    app.dependency_overrides[get_text_cleanup_client] = lambda: fake_cleanup

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


async def _create_document(db_session: AsyncSession, upload_store: UploadStore, name: str) -> dict:
    path = upload_store.base_path / f"stored-{name}"
    path.write_bytes(PNG_BYTES)
    document = Document(
        filename=path.name,
        original_name=name,
        file_path=str(path),
        mime_type="image/png",
        size=len(PNG_BYTES),
        ocr_text=f"raw text of {name}",
        ocr_confidence=88.5,
        ai_cleaned_text=f"# cleaned text of {name}",
        ai_processed=True,
        ai_model="gpt-4o",
    )
    db_session.add(document)
    await db_session.commit()
    return {
        "id": document.id,
        "original_name": document.original_name,
        "file_path": document.file_path,
        "ocr_text": document.ocr_text,
        "ai_cleaned_text": document.ai_cleaned_text,
    }


@pytest_asyncio.fixture
async def test_document(db_session: AsyncSession, upload_store: UploadStore):
    """Create a processed document with a stored image."""
    return await _create_document(db_session, upload_store, "page-1.png")


@pytest_asyncio.fixture
async def test_document_2(db_session: AsyncSession, upload_store: UploadStore):
    return await _create_document(db_session, upload_store, "page-2.png")


@pytest_asyncio.fixture
async def test_document_3(db_session: AsyncSession, upload_store: UploadStore):
    return await _create_document(db_session, upload_store, "page-3.png")


@pytest_asyncio.fixture
async def test_context_document(db_session: AsyncSession, upload_store: UploadStore):
    """Create a context document about domain terminology."""
    path = upload_store.base_path / "glossary.md"
    path.write_text("Kubernetes, kubectl, etcd")
    document = ContextDocument(
        filename=path.name,
        original_name="glossary.md",
        file_path=str(path),
        mime_type="text/markdown",
        size=path.stat().st_size,
        content="Kubernetes, kubectl, etcd",
        description="Cluster terms",
        category="devops",
    )
    db_session.add(document)
    await db_session.commit()
    return {"id": document.id, "original_name": document.original_name, "file_path": document.file_path}


@pytest.fixture
def upload_factory():
    """Build in-memory multipart uploads; pass ``data=CORRUPT_IMAGE`` for one recognition rejects."""
    return make_upload


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def corrupt_image() -> bytes:
    return CORRUPT_IMAGE
