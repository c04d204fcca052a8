from fastapi import APIRouter

from ....infrastructure.config import describe_services
from .context import router as context_router
from .documents import router as documents_router
from .note_sets import router as note_sets_router
from .uploads import router as uploads_router

router = APIRouter(prefix="/v1")
router.include_router(uploads_router)
router.include_router(documents_router)
router.include_router(note_sets_router)
router.include_router(context_router)


@router.get(
    "/health",
    summary="API Health Check",
    description="""
    Health check endpoint for monitoring and container orchestration.

    Also reports which external services have credentials configured.
    Layout analysis and text cleanup are optional; without text recognition
    uploads fail with 503.
    """,
    responses={
        200: {"description": "API is healthy and responding"},
    },
)
async def health_check():
    """Health check endpoint for Docker health checks."""
    return {"status": "ok", "message": "Note Capture API is running", "services": describe_services()}
