"""Upload storage on the local filesystem."""

import os
import random
import time
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

from ...modules.common.constants import CONTEXT_EXTENSIONS, CONTEXT_MIME_TYPES, IMAGE_MIME_TYPES
from ...modules.common.exceptions import ValidationError
from ..config.settings import get_settings
from ..logging import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 1024 * 1024


class UploadLike(Protocol):
    """The parts of an incoming multipart file the store relies on."""

    filename: Optional[str]

    @property
    def content_type(self) -> Optional[str]: ...

    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class StoredUpload:
    """An upload written to disk, ready for processing."""

    filename: str
    original_name: str
    path: str
    mime_type: str
    size: int


def is_image_upload(content_type: str, filename: str) -> bool:
    return content_type in IMAGE_MIME_TYPES


def is_context_upload(content_type: str, filename: str) -> bool:
    return content_type in CONTEXT_MIME_TYPES or Path(filename).suffix.lower() in CONTEXT_EXTENSIONS


class UploadStore:
    """Stores uploaded files under a single directory with collision-free names."""

    def __init__(self, base_path: Union[str, Path], max_size: int):
        self.base_path = Path(base_path)
        self.max_size = max_size
        self.base_path.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_filename(original_name: str) -> str:
        """``{epoch millis}-{random}{original extension}``"""
        suffix = Path(original_name).suffix
        return f"{int(time.time() * 1000)}-{random.randint(0, 999_999_999)}{suffix}"

    async def save(
        self,
        upload: UploadLike,
        accept: Callable[[str, str], bool] = is_image_upload,
        type_error: str = "Invalid file type. Only image files are allowed.",
    ) -> StoredUpload:
        """Validate and write an upload to disk.

        Raises:
            ValidationError: If the file is missing, of a disallowed type, or too large.
        """
        if upload is None or not upload.filename:
            raise ValidationError("No file uploaded")

        content_type = upload.content_type or "application/octet-stream"
        if not accept(content_type, upload.filename):
            raise ValidationError(type_error)

        filename = self.generate_filename(upload.filename)
        file_path = self.base_path / filename
        size = 0

        with open(file_path, "wb") as buffer:
            while chunk := await upload.read(CHUNK_SIZE):
                size += len(chunk)
                if size > self.max_size:
                    break
                buffer.write(chunk)

        if size > self.max_size:
            self.delete(str(file_path))
            raise ValidationError(
                f"File {upload.filename} exceeds the maximum upload size of {self.max_size // (1024 * 1024)} MB"
            )

        logger.info(f"Stored upload {upload.filename} as {filename}", extra={"size": size})
        return StoredUpload(
            filename=filename,
            original_name=upload.filename,
            path=str(file_path),
            mime_type=content_type,
            size=size,
        )

    def delete(self, path: str) -> bool:
        """Delete a stored file; returns False if it was already gone."""
        if os.path.exists(path):
            os.unlink(path)
            logger.info(f"Deleted stored file: {path}")
            return True
        logger.warning(f"Attempted to delete non-existent file: {path}")
        return False

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)


@lru_cache()
def get_upload_store() -> UploadStore:
    """Get the upload store configured from settings."""
    settings = get_settings()
    return UploadStore(settings.UPLOAD_DIR, settings.MAX_UPLOAD_SIZE)
