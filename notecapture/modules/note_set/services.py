"""Note set management service."""

from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastcrud.paginated.response import paginated_response
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.database.models import utc_now
from ...infrastructure.logging import get_logger
from ..common.exceptions import DuplicateMemberError, ResourceNotFoundError, ValidationError
from ..document.services import DocumentService
from .crud import note_set_crud
from .models import NoteSet, NoteSetMember
from .schemas import (
    MembershipEntry,
    NoteSetCreate,
    NoteSetDetail,
    NoteSetMemberRead,
    NoteSetRead,
    NoteSetUpdate,
)

logger = get_logger(__name__)


class NoteSetService:
    """Service for managing note sets and their ordered memberships.

    Every mutation here leaves membership orders dense (``0..M-1`` in list
    position) and refreshes the note set's ``updated_at``. Note sets built by
    batch ingestion go through ``create_with_memberships`` instead, which
    stores the orders it is given as-is.
    """

    def __init__(self, document_service: Optional[DocumentService] = None):
        self.document_service = document_service or DocumentService()

    async def _require_note_set(self, note_set_id: int, db: AsyncSession) -> None:
        if not await note_set_crud.exists(db=db, id=note_set_id):
            raise ResourceNotFoundError(f"Note set with ID {note_set_id} not found")

    async def _validate_document_ids(self, document_ids: Sequence[int], db: AsyncSession) -> None:
        if len(set(document_ids)) != len(document_ids):
            raise ValidationError("Document IDs must be unique")

        missing = await self.document_service.find_missing_ids(document_ids, db)
        if missing:
            raise ResourceNotFoundError(f"Documents not found: {', '.join(str(i) for i in missing)}")

    async def _members(self, note_set_id: int, db: AsyncSession) -> List[NoteSetMember]:
        result = await db.execute(
            select(NoteSetMember)
            .where(NoteSetMember.note_set_id == note_set_id)
            .order_by(NoteSetMember.position, NoteSetMember.id)
        )
        return list(result.scalars())

    async def _touch(self, note_set_id: int, db: AsyncSession, **changes: Any) -> None:
        await db.execute(update(NoteSet).where(NoteSet.id == note_set_id).values(updated_at=utc_now(), **changes))

    @staticmethod
    def _to_read(note_set: Dict[str, Any], members: Sequence[NoteSetMember]) -> NoteSetRead:
        return NoteSetRead(
            id=note_set["id"],
            name=note_set["name"],
            created_at=note_set["created_at"],
            updated_at=note_set["updated_at"],
            documents=[MembershipEntry(document_id=m.document_id, order=m.position) for m in members],
            document_count=len(members),
        )

    async def create_note_set(
        self,
        note_set_data: NoteSetCreate,
        db: AsyncSession,
    ) -> NoteSetDetail:
        """Create a note set from existing documents.

        Args:
            note_set_data: Name and document IDs; order follows list position
            db: Database session

        Returns:
            The created note set with its documents resolved

        Raises:
            ValidationError: If a document ID appears more than once
            ResourceNotFoundError: If any document does not exist
        """
        await self._validate_document_ids(note_set_data.document_ids, db)

        memberships = [(document_id, order) for order, document_id in enumerate(note_set_data.document_ids)]
        return await self.create_with_memberships(note_set_data.name, memberships, db)

    async def create_with_memberships(
        self,
        name: str,
        memberships: Sequence[Tuple[int, int]],
        db: AsyncSession,
    ) -> NoteSetDetail:
        """Persist a note set with explicit ``(document_id, order)`` pairs in one commit.

        Orders are stored exactly as given, gaps included.
        """
        note_set = NoteSet(name=name)
        db.add(note_set)
        await db.flush()

        db.add_all(
            [
                NoteSetMember(note_set_id=note_set.id, document_id=document_id, position=order)
                for document_id, order in memberships
            ]
        )
        await db.commit()

        logger.info(f"Created note set {note_set.id}", extra={"note_set_name": name, "member_count": len(memberships)})

        return await self.get_note_set_or_raise(note_set.id, db)

    async def get_note_set(
        self,
        note_set_id: int,
        db: AsyncSession,
    ) -> Optional[NoteSetDetail]:
        """Get a note set with its member documents resolved.

        Members whose document was deleted are returned with ``document=None``.

        Args:
            note_set_id: Note set ID to retrieve
            db: Database session

        Returns:
            Note set detail, or None if it doesn't exist
        """
        note_set = await note_set_crud.get(db=db, id=note_set_id)
        if not note_set:
            return None

        members = await self._members(note_set_id, db)
        documents = await self.document_service.get_documents_by_ids([m.document_id for m in members], db)

        return NoteSetDetail(
            id=note_set["id"],
            name=note_set["name"],
            created_at=note_set["created_at"],
            updated_at=note_set["updated_at"],
            documents=[
                NoteSetMemberRead(document_id=m.document_id, order=m.position, document=documents.get(m.document_id))
                for m in members
            ],
            document_count=len(members),
        )

    async def get_note_set_or_raise(self, note_set_id: int, db: AsyncSession) -> NoteSetDetail:
        """Like ``get_note_set``, but a missing note set raises ``ResourceNotFoundError``."""
        detail = await self.get_note_set(note_set_id, db)
        if detail is None:
            raise ResourceNotFoundError(f"Note set with ID {note_set_id} not found")
        return detail

    async def get_note_sets(
        self,
        db: AsyncSession,
        page: int = 1,
        items_per_page: int = 50,
    ) -> dict[str, Any]:
        """Get note sets with pagination, most recently updated first.

        Args:
            db: Database session
            page: Page number (1-indexed)
            items_per_page: Number of note sets per page

        Returns:
            Paginated response with note sets and their membership entries
        """
        crud_data = await note_set_crud.get_multi(
            db=db,
            offset=(page - 1) * items_per_page,
            limit=items_per_page,
            sort_columns=["updated_at", "id"],
            sort_orders=["desc", "desc"],
        )
        note_sets: List[Dict[str, Any]] = crud_data["data"]

        members_by_set: Dict[int, List[NoteSetMember]] = defaultdict(list)
        if note_sets:
            result = await db.execute(
                select(NoteSetMember)
                .where(NoteSetMember.note_set_id.in_([n["id"] for n in note_sets]))
                .order_by(NoteSetMember.position, NoteSetMember.id)
            )
            for member in result.scalars():
                members_by_set[member.note_set_id].append(member)

        crud_data["data"] = [
            self._to_read(note_set, members_by_set[note_set["id"]]).model_dump() for note_set in note_sets
        ]
        return paginated_response(crud_data, page, items_per_page)

    async def update_note_set(
        self,
        note_set_id: int,
        update_data: NoteSetUpdate,
        db: AsyncSession,
    ) -> NoteSetDetail:
        """Rename a note set and/or replace its documents wholesale.

        Args:
            note_set_id: Note set ID to update
            update_data: New name and/or full list of document IDs
            db: Database session

        Returns:
            Updated note set detail

        Raises:
            ResourceNotFoundError: If the note set or any document does not exist
            ValidationError: If a document ID appears more than once
        """
        await self._require_note_set(note_set_id, db)

        changes: Dict[str, Any] = {}
        if update_data.name is not None:
            changes["name"] = update_data.name

        if update_data.document_ids is not None:
            await self._validate_document_ids(update_data.document_ids, db)
            await db.execute(delete(NoteSetMember).where(NoteSetMember.note_set_id == note_set_id))
            db.add_all(
                [
                    NoteSetMember(note_set_id=note_set_id, document_id=document_id, position=order)
                    for order, document_id in enumerate(update_data.document_ids)
                ]
            )

        await self._touch(note_set_id, db, **changes)
        await db.commit()

        return await self.get_note_set_or_raise(note_set_id, db)

    async def add_document(
        self,
        note_set_id: int,
        document_id: int,
        db: AsyncSession,
    ) -> NoteSetDetail:
        """Append a document to the end of a note set.

        Raises:
            ResourceNotFoundError: If the note set or document does not exist
            DuplicateMemberError: If the document is already a member
        """
        await self._require_note_set(note_set_id, db)
        if await self.document_service.find_missing_ids([document_id], db):
            raise ResourceNotFoundError(f"Document with ID {document_id} not found")

        members = await self._members(note_set_id, db)
        if any(member.document_id == document_id for member in members):
            raise DuplicateMemberError(note_set_id, document_id)

        db.add(NoteSetMember(note_set_id=note_set_id, document_id=document_id, position=len(members)))
        await self._touch(note_set_id, db)
        await db.commit()

        return await self.get_note_set_or_raise(note_set_id, db)

    async def remove_document(
        self,
        note_set_id: int,
        document_id: int,
        db: AsyncSession,
    ) -> NoteSetDetail:
        """Remove a document from a note set and re-pack the remaining orders.

        The document itself is left untouched.

        Raises:
            ResourceNotFoundError: If the note set does not exist or the document is not a member
        """
        await self._require_note_set(note_set_id, db)

        members = await self._members(note_set_id, db)
        target = next((member for member in members if member.document_id == document_id), None)
        if target is None:
            raise ResourceNotFoundError(f"Document {document_id} is not in note set {note_set_id}")

        await db.delete(target)
        remaining = [member for member in members if member is not target]
        for position, member in enumerate(remaining):
            member.position = position

        await self._touch(note_set_id, db)
        await db.commit()

        return await self.get_note_set_or_raise(note_set_id, db)

    async def delete_note_set(
        self,
        note_set_id: int,
        db: AsyncSession,
    ) -> bool:
        """Delete a note set and its memberships; member documents are kept.

        Args:
            note_set_id: Note set ID to delete
            db: Database session

        Returns:
            True if deletion was successful, False if it didn't exist
        """
        if not await note_set_crud.exists(db=db, id=note_set_id):
            return False

        await db.execute(delete(NoteSetMember).where(NoteSetMember.note_set_id == note_set_id))
        await db.execute(delete(NoteSet).where(NoteSet.id == note_set_id))
        await db.commit()

        logger.info(f"Deleted note set {note_set_id}")
        return True
