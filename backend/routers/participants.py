"""Participants router: trip participants and the settlements between them."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload

import models
import schemas
from database import get_db
from utils.errors import ValidationError, persistence_errors
from utils.validation import (
    clean_str, ensure_unique_participant_name, get_owned_or_404, get_participant_on_trip,
    get_trip_or_404, is_blank, require_different, require_fields, require_positive_number
)


router = APIRouter(prefix="/trips/{trip_id}", tags=["participants"])


@router.get("/participants", response_model=schemas.Envelope[list[schemas.Participant]])
def list_participants(trip_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to fetch participants"):
        get_trip_or_404(db, trip_id)
        participants = db.query(models.TripParticipant).options(
            selectinload(models.TripParticipant.family_member)
        ).filter(
            models.TripParticipant.trip_id == trip_id
        ).order_by(models.TripParticipant.created_at).all()
        return {"data": participants, "error": None}


@router.post(
    "/participants",
    response_model=schemas.Envelope[schemas.Participant],
    status_code=status.HTTP_201_CREATED,
)
def add_participant(trip_id: str, payload: schemas.ParticipantCreate, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to create participant"):
        name = clean_str(payload.name)
        require_fields("name is required", name)

        get_trip_or_404(db, trip_id)
        ensure_unique_participant_name(db, trip_id, name)

        participant = models.TripParticipant(
            trip_id=trip_id,
            name=name,
            email=payload.email,
            family_member_id=payload.family_member_id,
            group_name=payload.group_name,
        )
        db.add(participant)
        db.commit()
        db.refresh(participant)
        return {"data": participant, "error": None}


@router.delete("/participants/{participant_id}", response_model=schemas.Envelope[schemas.DeletedRecord])
def remove_participant(trip_id: str, participant_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to delete participant"):
        participant = get_owned_or_404(
            db, models.TripParticipant, participant_id, "trip_id", trip_id, "Participant"
        )
        # Splits and settlements referencing the participant go with it (ON DELETE CASCADE)
        db.delete(participant)
        db.commit()
        return {"data": {"id": participant_id}, "error": None}


@router.post(
    "/settlements",
    response_model=schemas.Envelope[schemas.Settlement],
    status_code=status.HTTP_201_CREATED,
)
def create_settlement(trip_id: str, payload: schemas.SettlementCreate, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to create settlement"):
        # amount is only "missing" when absent or null; any other value goes to the positivity check
        if is_blank(payload.from_id) or is_blank(payload.to_id) or payload.amount is None:
            raise ValidationError("fromId, toId, and amount are required")
        amount = require_positive_number(payload.amount, "amount must be a positive number")
        require_different(payload.from_id, payload.to_id, "fromId and toId must be different participants")

        get_trip_or_404(db, trip_id)
        get_participant_on_trip(db, trip_id, payload.from_id, "fromId")
        get_participant_on_trip(db, trip_id, payload.to_id, "toId")

        settlement = models.Settlement(
            trip_id=trip_id,
            from_id=payload.from_id,
            to_id=payload.to_id,
            amount=amount,
            note=payload.note,
            settled_at=datetime.now(timezone.utc),
        )
        db.add(settlement)
        db.commit()
        db.refresh(settlement)
        return {"data": settlement, "error": None}
