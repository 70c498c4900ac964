"""Event API routes.

Learn: Routes translate HTTP to EventService calls; the service does the
owner scoping and raises domain errors that main.py maps to status codes.
Every handler takes the CurrentIdentity and passes its user_id down, so
there is no code path that reaches an event without an owner filter.

Literal paths (/current, /new, /step, /category) are declared before
/{event_id} so they are not captured as ids.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from plannora.auth.dependencies import CurrentIdentity, get_current_user
from plannora.db.engine import get_db
from plannora.errors import ValidationError
from plannora.schemas.event import (
    CategoryPatch,
    EventRead,
    EventUpdate,
    EventWrite,
    StepPatch,
)
from plannora.services.event_service import EventService

router = APIRouter(prefix="/events")


def _svc(db: AsyncSession = Depends(get_db)) -> EventService:
    return EventService(db)


# ═══════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════


@router.get("", response_model=list[EventRead])
async def list_events(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    """All of the user's events, most recently updated first."""
    return await svc.list_all(identity.user_id)


@router.get("/current", response_model=EventRead)
async def get_current_event(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    return await svc.get_current(identity.user_id)


# ═══════════════════════════════════════════════════════════
# Writes
# ═══════════════════════════════════════════════════════════


@router.post("", response_model=EventRead)
async def save_event(
    body: EventWrite,
    response: Response,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    """Create or update (by id, then by name). 201 on create, 200 on update."""
    event, created = await svc.upsert(identity.user_id, body)
    response.status_code = 201 if created else 200
    return event


@router.post("/new", response_model=EventRead, status_code=201)
async def create_event(
    body: EventWrite,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    """Always create a new event, even if one with this name exists."""
    return await svc.create_new(identity.user_id, body)


@router.patch("/step", response_model=EventRead)
async def update_step(
    body: StepPatch,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    """Set the wizard step on the given event, or on the current one."""
    if body.step is None:
        raise ValidationError("Step is required")
    return await svc.patch_step(identity.user_id, body.step, body.event_id)


@router.patch("/category", response_model=EventRead)
async def update_category(
    body: CategoryPatch,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    """Set the active provider category on the given event, or on the current one."""
    if not body.active_category:
        raise ValidationError("Active category is required")
    return await svc.patch_category(identity.user_id, body.active_category, body.event_id)


@router.delete("/current")
async def delete_current_event(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    await svc.delete_current(identity.user_id)
    return {"message": "Event deleted successfully"}


# ═══════════════════════════════════════════════════════════
# By id
# ═══════════════════════════════════════════════════════════


@router.get("/{event_id}", response_model=EventRead)
async def get_event(
    event_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    return await svc.get_by_id(identity.user_id, event_id)


@router.put("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: str,
    body: EventUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    """Merge the given fields into the event. Any id in the body is ignored."""
    return await svc.update_by_id(identity.user_id, event_id, body)


@router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    await svc.delete_by_id(identity.user_id, event_id)
    return Response(status_code=204)
