"""Builds the reference-context block injected into cleanup prompts."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.logging import get_logger
from ..common.results import AdvisoryResult
from .models import ContextDocument

logger = get_logger(__name__)

CONTEXT_HEADER = "\n\n## Reference Context:\n"


def format_context_block(documents: List[ContextDocument]) -> str:
    """Render context documents in the order given; empty input renders as ""."""
    if not documents:
        return ""

    block = CONTEXT_HEADER
    for index, document in enumerate(documents, start=1):
        block += f"\n### Reference Document {index}: {document.original_name}\n"
        if document.description:
            block += f"Description: {document.description}\n"
        if document.category:
            block += f"Category: {document.category}\n"
        block += f"Content:\n{document.content}\n"
    return block


class ContextRetriever:
    """Selects reference documents for a cleanup request.

    Documents are picked purely by upload recency. ``hint`` (the recognized
    text) is accepted so callers don't change once relevance ranking exists,
    but it does not influence the selection today.
    """

    def __init__(self, limit: int = 3):
        self.limit = limit

    async def recent_documents(self, db: AsyncSession, limit: int) -> List[ContextDocument]:
        result = await db.execute(
            select(ContextDocument)
            .order_by(ContextDocument.upload_date.desc(), ContextDocument.id.desc())
            .limit(limit)
        )
        return list(result.scalars())

    async def build_context_block(
        self,
        db: AsyncSession,
        hint: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> AdvisoryResult[str]:
        """Format the most recent context documents; never raises for storage errors."""
        try:
            documents = await self.recent_documents(db, self.limit if limit is None else limit)
        except SQLAlchemyError as e:
            logger.warning(f"Error fetching context documents: {e}")
            await db.rollback()
            return AdvisoryResult.fallback("", str(e))

        return AdvisoryResult.success(format_context_block(documents))
