"""Payload validation and ownership checks shared by the route handlers."""

import enum
import math
from typing import Any, Iterable, Type, TypeVar

from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

import models
from utils.errors import NotFoundError, ValidationError

E = TypeVar("E", bound=enum.Enum)

LAST_FOUR_LENGTH = 4


def clean_str(value):
    """Trim surrounding whitespace from strings, pass anything else through."""
    return value.strip() if isinstance(value, str) else value


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(message: str, *values: Any) -> None:
    """Raise ValidationError(message) if any value is missing, null or empty after trim."""
    if any(is_blank(value) for value in values):
        raise ValidationError(message)


def require_not_blank(updates: dict, fields: Iterable[str]) -> None:
    """For partial updates: a required column may be omitted, but not cleared."""
    for field in fields:
        if field in updates and is_blank(updates[field]):
            raise ValidationError(f"{to_camel(field)} cannot be empty")


def describe_choices(enum_cls: Type[enum.Enum]) -> str:
    """Render enum values the way error messages quote them: 'a', 'b', or 'c'."""
    quoted = [f"'{member.value}'" for member in enum_cls]
    if len(quoted) == 1:
        return quoted[0]
    if len(quoted) == 2:
        return f"{quoted[0]} or {quoted[1]}"
    return ", ".join(quoted[:-1]) + f", or {quoted[-1]}"


def list_choices(enum_cls: Type[enum.Enum]) -> str:
    return ", ".join(member.value for member in enum_cls)


def require_enum(value: Any, enum_cls: Type[E], message: str) -> E:
    """Convert a raw value into a member of the closed enum, or fail with message."""
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(message) from None


def require_positive_number(value: Any, message: str) -> float:
    # bool is an int subclass; true/false are not amounts
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(message)
    if not math.isfinite(value) or value <= 0:
        raise ValidationError(message)
    return value


def require_last_four(value: str) -> str:
    if len(value) != LAST_FOUR_LENGTH or not value.isascii() or not value.isdigit():
        raise ValidationError("lastFour must be exactly 4 digits")
    return value


def require_different(first: Any, second: Any, message: str) -> None:
    if first == second:
        raise ValidationError(message)


def get_record(db: Session, model, record_id: str):
    """
    Load a row for update/delete.

    Raises sqlalchemy NoResultFound when the row is missing, which the
    handler's persistence guard reports as that endpoint's failure message.
    """
    return db.query(model).filter(model.id == record_id).one()


def get_trip_or_404(db: Session, trip_id: str) -> models.Trip:
    """Get a trip by ID or raise 404 if not found."""
    trip = db.query(models.Trip).filter(models.Trip.id == trip_id).first()
    if not trip:
        raise NotFoundError("Trip not found")
    return trip


def get_owned_or_404(db: Session, model, record_id: str, parent_field: str, parent_id: str, label: str):
    """
    Load a nested record and confirm it belongs to the parent in the URL.

    A record under a different parent is reported exactly like a missing one.
    """
    record = db.query(model).filter(model.id == record_id).first()
    if not record or getattr(record, parent_field) != parent_id:
        raise NotFoundError(f"{label} not found")
    return record


def get_participant_on_trip(db: Session, trip_id: str, participant_id: str, field: str) -> models.TripParticipant:
    """Resolve a participant referenced by a payload field, scoped to the trip."""
    participant = db.query(models.TripParticipant).filter(
        models.TripParticipant.id == participant_id
    ).first()
    if not participant or participant.trip_id != trip_id:
        raise NotFoundError(f"{field} participant not found on this trip")
    return participant


def ensure_unique_participant_name(db: Session, trip_id: str, name: str) -> None:
    # Read-then-insert; the (trip_id, name) unique constraint backs this up under concurrency
    existing = db.query(models.TripParticipant).filter(
        models.TripParticipant.trip_id == trip_id,
        models.TripParticipant.name == name
    ).first()
    if existing:
        raise ValidationError(f'Participant "{name}" already exists on this trip')
