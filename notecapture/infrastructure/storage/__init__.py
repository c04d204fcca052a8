"""Local storage for uploaded file bytes."""

from .uploads import StoredUpload, UploadStore, get_upload_store, is_context_upload, is_image_upload

__all__ = ["StoredUpload", "UploadStore", "get_upload_store", "is_context_upload", "is_image_upload"]
