# renobudget/db/room_repository.py
from typing import Any, Dict, List, Optional, Sequence, Set, Type
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from renobudget.db.enums import GENERAL_ROOM_SLUG, GENERAL_ROOM_NAME
from renobudget.db.store_guard import store_guard
from renobudget.errors import Conflict, NotFound, PersistenceFailure
from renobudget.logger import get_logger
from renobudget.models.room import Room
from renobudget.schemas.dto.item_dto import GeneralItemDTO, ItemDTO
from renobudget.schemas.dto.room_dto import RoomDTO, RoomOverviewDTO, RoomSaveDTO
from renobudget.schemas.dto.user_dto import CallerContext
from renobudget.services.allocation_service import AllocationService
from renobudget.services.cost_calculation_service import (
    apply_selected_option,
    compute_item_subtotal,
    compute_items_derived,
    compute_room_derived,
)
from renobudget.services.validation_service import ValidationService

logger = get_logger(__name__)


class RoomRepository:
    """
    The only component that talks to the store.

    Unit of storage is one Room row whose ``items`` column holds the ordered item
    documents. Every write replaces one row, so a room write is atomic; there is no
    cross-room transaction.
    """

    def __init__(
        self,
        db: Session,
        validation_service: Optional[ValidationService] = None,
        allocation_service: Optional[AllocationService] = None,
    ):
        self.db = db
        self.validation_service = validation_service or ValidationService()
        self.allocation_service = allocation_service or AllocationService()

    # ======================================================
    # 🔌 Internal helpers
    # ======================================================

    def _store_guard(self, action: str):
        return store_guard(self.db, action)

    def _find(self, slug: str) -> Optional[Room]:
        return self.db.execute(select(Room).where(Room.slug == slug)).scalar_one_or_none()

    def _load(self, slug: str) -> Room:
        room = self._find(slug)
        if room is None:
            raise NotFound(f"Room not found: {slug}")
        return room

    @staticmethod
    def _item_model(slug: str) -> Type[ItemDTO]:
        return GeneralItemDTO if slug == GENERAL_ROOM_SLUG else ItemDTO

    @staticmethod
    def _to_document(item: ItemDTO) -> Dict[str, Any]:
        doc = item.to_wire()
        doc["_id"] = doc.pop("id")
        # 只为读性能缓存，读取时不信任
        doc["subtotal"] = compute_item_subtotal(item)
        return doc

    @staticmethod
    def _from_document(doc: Dict[str, Any], model: Type[ItemDTO], slug: str) -> ItemDTO:
        data = dict(doc)
        data.pop("subtotal", None)
        item_id = data.pop("_id", None)
        if not item_id:
            # 迁移前的旧数据没有稳定 id，无法按 id 对账
            raise PersistenceFailure(f"Room {slug} holds an item without a stable id")
        data["id"] = str(item_id)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise PersistenceFailure(f"Room {slug} holds a malformed item {item_id}") from e

    def _to_dto(self, room: Room) -> RoomDTO:
        model = self._item_model(room.slug)
        return RoomDTO(
            id=room.id,
            slug=room.slug,
            name=room.name,
            budget=room.budget or 0.0,
            status=room.status,
            images=list(room.images or []),
            items=[self._from_document(doc, model, room.slug) for doc in (room.items or [])],
        )

    def _balance_shared_items(self, items: Sequence[ItemDTO]) -> List[ItemDTO]:
        '''Shared _general items keep their allocations balanced against total_amount.'''
        balanced = []
        for item in items:
            if isinstance(item, GeneralItemDTO) and item.is_shared_expense:
                allocations = self.allocation_service.normalize(item.total_amount, item.rooms, item.room_allocations)
                item = item.model_copy(update={"room_allocations": allocations})
            balanced.append(item)
        return balanced

    def _write_items(self, room: Room, items: Sequence[ItemDTO]) -> None:
        room.items = [self._to_document(item) for item in items]
        room.status = compute_items_derived(items).status

    # ======================================================
    # 📖 Reads
    # ======================================================

    def list_rooms(self, *, include_general: bool = True) -> List[RoomDTO]:
        with self._store_guard("list rooms"):
            stmt = select(Room).order_by(Room.created_at, Room.slug)
            if not include_general:
                stmt = stmt.where(Room.slug != GENERAL_ROOM_SLUG)
            rooms = self.db.execute(stmt).scalars().all()
            return [self._to_dto(room) for room in rooms]

    def list_rooms_overview(self) -> List[RoomOverviewDTO]:
        '''Regular rooms (not _general) with derived figures recomputed from their items.'''
        overview = []
        for room in self.list_rooms(include_general=False):
            derived = compute_room_derived(room)
            overview.append(RoomOverviewDTO(
                id=room.id,
                slug=room.slug,
                name=room.name,
                budget=room.budget,
                actual_spent=derived.actual_spent,
                completed_items=derived.completed_items,
                total_items=derived.total_items,
                progress_percent=derived.progress_percent,
                status=derived.status,
            ))
        return overview

    def get_room(self, slug: str) -> RoomDTO:
        with self._store_guard(f"load room {slug}"):
            return self._to_dto(self._load(slug))

    def room_slugs(self, *, include_general: bool = False) -> Set[str]:
        with self._store_guard("list room slugs"):
            slugs = set(self.db.execute(select(Room.slug)).scalars().all())
        if not include_general:
            slugs.discard(GENERAL_ROOM_SLUG)
        return slugs

    # ======================================================
    # ✍️ Writes
    # ======================================================

    def create_room(self, *, slug: str, name: str, budget: float = 0.0) -> RoomDTO:
        '''
        Create an empty room.

        :raises Conflict: slug already taken or reserved
        '''
        if slug == GENERAL_ROOM_SLUG:
            raise Conflict(f"{GENERAL_ROOM_SLUG} is reserved")
        with self._store_guard(f"create room {slug}"):
            if self._find(slug) is not None:
                raise Conflict(f"Room already exists: {slug}")
            room = Room(id=str(uuid4()), slug=slug, name=name, budget=budget, images=[], items=[])
            room.status = compute_items_derived([]).status
            self.db.add(room)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise Conflict(f"Room already exists: {slug}") from e
            logger.info("Room created: %s (%s)", slug, room.id)
            return self._to_dto(room)

    def ensure_general_room(self) -> RoomDTO:
        '''Idempotently create the reserved _general room.'''
        with self._store_guard("ensure general room"):
            room = self._find(GENERAL_ROOM_SLUG)
            if room is not None:
                return self._to_dto(room)

            room = Room(
                id=str(uuid4()),
                slug=GENERAL_ROOM_SLUG,
                name=GENERAL_ROOM_NAME,
                budget=0.0,
                images=[],
                items=[],
            )
            room.status = compute_items_derived([]).status
            self.db.add(room)
            try:
                self.db.commit()
            except IntegrityError:
                # 并发请求已经创建
                self.db.rollback()
                return self._to_dto(self._load(GENERAL_ROOM_SLUG))
            logger.info("Created %s room (%s)", GENERAL_ROOM_SLUG, room.id)
            return self._to_dto(room)

    def save_room(self, *, slug: str, payload: RoomSaveDTO, caller: CallerContext) -> str:
        '''
        Replace a room's mutable fields and items list.

        - item ids present in the new list are preserved
        - items arriving without an id get a new one
        - stored items absent from the new list are dropped
        - selected product options re-mirror actual_price

        :param slug: room slug from the request path
        :param payload: name / budget / images / raw items
        :param caller: identity of the writer
        :return: room id
        :raises NotFound: slug does not exist
        :raises Conflict: reserved slug by a non-administrator, or slug change
        :raises ValidationFailure: any item rule broken (nothing is written)
        '''
        with self._store_guard(f"save room {slug}"):
            room = self._load(slug)

            if slug == GENERAL_ROOM_SLUG and not caller.is_admin:
                raise Conflict(f"{GENERAL_ROOM_SLUG} can only be rewritten by an administrator")
            if payload.slug and payload.slug != slug:
                raise Conflict("Room slug cannot be changed")

            # 1️⃣ parse + validate before touching the row
            items = self.validation_service.parse_list(self._item_model(slug), payload.items, "items")
            self.validation_service.validate_room_items(items)
            items = apply_selected_option(items)
            if slug == GENERAL_ROOM_SLUG:
                items = self._balance_shared_items(items)

            # 2️⃣ stable ids
            stored_ids = {str(doc.get("_id")) for doc in (room.items or []) if doc.get("_id")}
            minted = 0
            for item in items:
                if not item.id:
                    item.id = str(uuid4())
                    minted += 1
            kept_ids = {item.id for item in items}
            dropped = len(stored_ids - kept_ids)

            # 3️⃣ single-row write
            if payload.name and payload.name.strip():
                room.name = payload.name.strip()
            if payload.budget is not None:
                room.budget = payload.budget
            if payload.images is not None:
                room.images = list(payload.images)
            self._write_items(room, items)
            self.db.commit()

            logger.info(
                "Room saved: %s items=%d new=%d dropped=%d by=%s",
                slug, len(items), minted, dropped, caller.caller_id,
            )
            return room.id

    def list_general_items(self) -> List[GeneralItemDTO]:
        return list(self.ensure_general_room().items)

    def replace_general_items(self, items: Sequence[GeneralItemDTO]) -> None:
        '''One write of the whole _general items list, in the given order.'''
        with self._store_guard("save general expenses"):
            room = self._load(GENERAL_ROOM_SLUG)
            self._write_items(room, items)
            self.db.commit()
