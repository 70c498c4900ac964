"""Pydantic schemas for events and provider selections.

Learn: the schema is lenient: only `name` is required when creating an
event, everything else has a default. Nulls sent for defaulted fields are
treated as "not sent" rather than rejected, because the wizard client
posts whatever state it has.

Write payloads may carry the event id as `id` or `_id`.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from plannora.schemas.base import CamelModel

# Fields with a non-null default: a null for any of these is dropped.
_DEFAULTED = {
    "eventType": "event_type",
    "guestCount": "guest_count",
    "budget": "budget",
    "selectedProviders": "selected_providers",
    "categories": "categories",
    "step": "step",
    "activeCategory": "active_category",
}


def _drop_null_defaults(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    keys = set(_DEFAULTED) | set(_DEFAULTED.values())
    return {k: v for k, v in data.items() if not (k in keys and v is None)}


def _id_to_str(v: Any) -> Any:
    if isinstance(v, (int, uuid.UUID)):
        return str(v)
    return v


# ─── Provider selections ────────────────────────────────

class SelectedProvider(CamelModel):
    """A service provider (venue, catering, ...) picked for the event."""

    id: str
    name: str
    price: float = 0
    original_price: Optional[float] = None
    category: str
    image: str = ""
    is_per_person: bool = False
    offer_id: Optional[str] = None
    offer_name: Optional[str] = None

    @field_validator("id", "offer_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: Any) -> Any:
        return _id_to_str(v)


# ─── Writes ─────────────────────────────────────────────

class _EventFields(CamelModel):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "_id"))
    date: Optional[str] = Field(None, max_length=64)
    location: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    event_type: str = Field("Party", max_length=100)
    guest_count: int = Field(0, ge=0)
    budget: float = Field(0, ge=0)
    selected_providers: list[SelectedProvider] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    step: int = Field(1, ge=1)
    active_category: str = Field("", max_length=100)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return _id_to_str(v)

    @model_validator(mode="before")
    @classmethod
    def lenient_nulls(cls, data: Any) -> Any:
        return _drop_null_defaults(data)

    @field_validator("name", check_fields=False)
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Event name must not be blank")
        return v

    def to_columns(self, partial: bool = False) -> dict[str, Any]:
        """Column values for the ORM, without the id.

        partial=True keeps only the fields the client actually sent.
        """
        data = self.model_dump(exclude={"id"}, exclude_unset=partial)
        if data.get("name", "") is None:
            data.pop("name")
        if "selected_providers" in data:
            data["selected_providers"] = [
                p.model_dump(by_alias=True) for p in self.selected_providers
            ]
        return data


class EventWrite(_EventFields):
    """Body of POST /events and POST /events/new."""
    name: str = Field(..., max_length=200)


class EventUpdate(_EventFields):
    """Body of PUT /events/{id}: any subset of the event fields."""
    name: Optional[str] = Field(None, max_length=200)


class StepPatch(CamelModel):
    step: Optional[int] = Field(None, ge=1)
    event_id: Optional[str] = None

    @field_validator("event_id", mode="before")
    @classmethod
    def coerce_event_id(cls, v: Any) -> Any:
        return _id_to_str(v)


class CategoryPatch(CamelModel):
    active_category: Optional[str] = Field(None, max_length=100)
    event_id: Optional[str] = None

    @field_validator("event_id", mode="before")
    @classmethod
    def coerce_event_id(cls, v: Any) -> Any:
        return _id_to_str(v)


# ─── Reads ──────────────────────────────────────────────

class EventRead(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    date: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    event_type: str
    guest_count: int
    budget: float
    selected_providers: list[SelectedProvider]
    categories: list[str]
    step: int
    active_category: str
    created_at: datetime
    updated_at: datetime
