"""Event service — owner-scoped event storage.

Learn: every query in this module filters on `Event.owner_id`. An event
owned by someone else is indistinguishable from one that does not
exist: both raise NotFoundError, so ids cannot be probed.

Save resolution for POST /events (upsert) is, in order:
1. payload carries an id      -> update that event (must be owned)
2. owner has a same-name event -> update it instead of duplicating
3. otherwise                   -> create

Step 2 keeps repeated saves of an in-progress wizard from piling up
copies. create_new() skips it.
"""

import uuid
from typing import Any, Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from plannora.db.engine import storage_operation
from plannora.db.models import Event, User, utcnow
from plannora.errors import CannotReuseIdError, NotFoundError
from plannora.schemas.event import EventUpdate, EventWrite

logger = structlog.get_logger()

EVENT_NOT_FOUND = "Event not found"
NO_EVENTS = "No events found"


def _parse_id(raw: str | uuid.UUID) -> uuid.UUID:
    """Malformed ids are reported exactly like missing ones."""
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise NotFoundError(EVENT_NOT_FOUND)


class EventService:
    """Business logic for a user's events."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Reads ──────────────────────────────────────────

    @storage_operation("events.list")
    async def list_all(self, owner_id: uuid.UUID) -> list[Event]:
        result = await self.db.execute(
            select(Event)
            .where(Event.owner_id == owner_id)
            .order_by(Event.updated_at.desc(), Event.created_at.desc())
        )
        return list(result.scalars().all())

    @storage_operation("events.get_current")
    async def get_current(self, owner_id: uuid.UUID) -> Event:
        event = await self._latest(owner_id)
        if event is None:
            raise NotFoundError(NO_EVENTS)
        return event

    @storage_operation("events.get")
    async def get_by_id(self, owner_id: uuid.UUID, event_id: str | uuid.UUID) -> Event:
        return await self._owned(owner_id, event_id)

    # ─── Writes ─────────────────────────────────────────

    @storage_operation("events.upsert")
    async def upsert(self, owner_id: uuid.UUID, payload: EventWrite) -> tuple[Event, bool]:
        """Save an event; returns (event, created)."""
        columns = self._write_columns(payload)

        if payload.id:
            event = await self._owned(owner_id, payload.id)
            self._apply(event, columns)
            await self.db.commit()
            logger.info("events.updated", event_id=str(event.id), matched="id")
            return event, False

        # Serialise same-owner saves so two concurrent first saves cannot
        # both miss the name lookup (row lock; a no-op on SQLite).
        await self.db.execute(
            select(User.id).where(User.id == owner_id).with_for_update()
        )
        result = await self.db.execute(
            select(Event)
            .where(Event.owner_id == owner_id, Event.name == payload.name)
            .order_by(Event.updated_at.desc())
            .limit(1)
        )
        event = result.scalars().first()
        if event is not None:
            self._apply(event, columns)
            await self.db.commit()
            logger.info("events.updated", event_id=str(event.id), matched="name")
            return event, False

        event = await self._insert(owner_id, columns)
        return event, True

    @storage_operation("events.create")
    async def create_new(self, owner_id: uuid.UUID, payload: EventWrite) -> Event:
        if payload.id:
            raise CannotReuseIdError()
        return await self._insert(owner_id, self._write_columns(payload))

    @storage_operation("events.update")
    async def update_by_id(
        self, owner_id: uuid.UUID, event_id: str | uuid.UUID, payload: EventUpdate
    ) -> Event:
        event = await self._owned(owner_id, event_id)
        # to_columns() never includes the id, so the path id always wins.
        columns = payload.to_columns(partial=True)
        columns.setdefault("selected_providers", [])
        self._apply(event, columns)
        await self.db.commit()
        logger.info("events.updated", event_id=str(event.id), matched="path")
        return event

    @storage_operation("events.patch_step")
    async def patch_step(
        self, owner_id: uuid.UUID, step: int, event_id: Optional[str] = None
    ) -> Event:
        event = await self._target(owner_id, event_id)
        self._apply(event, {"step": step})
        await self.db.commit()
        return event

    @storage_operation("events.patch_category")
    async def patch_category(
        self, owner_id: uuid.UUID, active_category: str, event_id: Optional[str] = None
    ) -> Event:
        event = await self._target(owner_id, event_id)
        self._apply(event, {"active_category": active_category})
        await self.db.commit()
        return event

    @storage_operation("events.delete")
    async def delete_by_id(self, owner_id: uuid.UUID, event_id: str | uuid.UUID) -> None:
        eid = _parse_id(event_id)
        result = await self.db.execute(
            delete(Event).where(Event.id == eid, Event.owner_id == owner_id)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError(EVENT_NOT_FOUND)
        await self.db.commit()
        logger.info("events.deleted", event_id=str(eid))

    @storage_operation("events.delete_current")
    async def delete_current(self, owner_id: uuid.UUID) -> None:
        event = await self._latest(owner_id)
        if event is None:
            raise NotFoundError(NO_EVENTS)
        await self.db.delete(event)
        await self.db.commit()
        logger.info("events.deleted", event_id=str(event.id), matched="current")

    # ─── Helpers ────────────────────────────────────────

    @staticmethod
    def _write_columns(payload: EventWrite) -> dict[str, Any]:
        columns = payload.to_columns(partial=True)
        columns.setdefault("selected_providers", [])
        return columns

    async def _insert(self, owner_id: uuid.UUID, columns: dict[str, Any]) -> Event:
        # Unsent fields fall back to the schema defaults.
        values = EventWrite(name=columns["name"]).to_columns()
        values.update(columns)
        event = Event(owner_id=owner_id, **values)
        self.db.add(event)
        await self.db.commit()
        logger.info("events.created", event_id=str(event.id))
        return event

    @staticmethod
    def _apply(event: Event, columns: dict[str, Any]) -> None:
        for field, value in columns.items():
            setattr(event, field, value)
        event.updated_at = utcnow()

    async def _owned(self, owner_id: uuid.UUID, event_id: str | uuid.UUID) -> Event:
        result = await self.db.execute(
            select(Event).where(
                Event.id == _parse_id(event_id), Event.owner_id == owner_id
            )
        )
        event = result.scalars().first()
        if event is None:
            raise NotFoundError(EVENT_NOT_FOUND)
        return event

    async def _latest(self, owner_id: uuid.UUID) -> Event | None:
        result = await self.db.execute(
            select(Event)
            .where(Event.owner_id == owner_id)
            .order_by(Event.updated_at.desc(), Event.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def _target(self, owner_id: uuid.UUID, event_id: Optional[str]) -> Event:
        """The named event, or the current one when no id is given."""
        if event_id:
            return await self._owned(owner_id, event_id)
        event = await self._latest(owner_id)
        if event is None:
            raise NotFoundError(NO_EVENTS)
        return event
