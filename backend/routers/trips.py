"""Trips router: create, read, update, delete trips."""

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

import models
import schemas
from database import get_db
from utils.errors import NotFoundError, persistence_errors
from utils.validation import (
    clean_str, describe_choices, get_record, require_enum, require_fields, require_not_blank
)


router = APIRouter(prefix="/trips", tags=["trips"])

TRIP_TYPE_MESSAGE = f"type must be {describe_choices(models.TripType)}"


@router.get("", response_model=schemas.Envelope[list[schemas.TripSummary]])
def list_trips(db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to fetch trips"):
        trips = db.query(models.Trip).order_by(models.Trip.start_date.desc()).all()

        # One aggregate query instead of loading every expense row
        totals = {
            trip_id: (count, total)
            for trip_id, count, total in db.query(
                models.Expense.trip_id,
                func.count(models.Expense.id),
                func.coalesce(func.sum(models.Expense.amount), 0),
            ).group_by(models.Expense.trip_id).all()
        }

        summaries = []
        for trip in trips:
            count, total = totals.get(trip.id, (0, 0))
            summaries.append(schemas.TripSummary(
                **schemas.Trip.model_validate(trip).model_dump(),
                expense_count=count,
                total_spent=round(float(total), 2),
            ))
        return {"data": summaries, "error": None}


@router.post("", response_model=schemas.Envelope[schemas.Trip], status_code=status.HTTP_201_CREATED)
def create_trip(payload: schemas.TripCreate, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to create trip"):
        name = clean_str(payload.name)
        destination = clean_str(payload.destination)
        require_fields(
            "name, destination, startDate, and type are required",
            name, destination, payload.start_date, payload.type
        )
        trip_type = require_enum(payload.type, models.TripType, TRIP_TYPE_MESSAGE)

        trip = models.Trip(
            name=name,
            destination=destination,
            start_date=payload.start_date,
            end_date=payload.end_date,
            budget=payload.budget,
            type=trip_type.value,
            notes=payload.notes,
        )
        db.add(trip)
        db.commit()
        db.refresh(trip)
        return {"data": trip, "error": None}


@router.get("/{trip_id}", response_model=schemas.Envelope[schemas.TripDetail])
def get_trip(trip_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to fetch trip"):
        trip = db.query(models.Trip).options(
            selectinload(models.Trip.expenses).selectinload(models.Expense.family_member),
            selectinload(models.Trip.expenses).selectinload(models.Expense.credit_card),
            selectinload(models.Trip.expenses).selectinload(models.Expense.splits),
        ).filter(models.Trip.id == trip_id).first()
        if not trip:
            raise NotFoundError("Trip not found")
        return {"data": trip, "error": None}


@router.patch("/{trip_id}", response_model=schemas.Envelope[schemas.Trip])
def update_trip(trip_id: str, payload: schemas.TripUpdate, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to update trip"):
        updates = payload.model_dump(exclude_unset=True)
        for field in ("name", "destination"):
            if field in updates:
                updates[field] = clean_str(updates[field])
        if "type" in updates:
            updates["type"] = require_enum(updates["type"], models.TripType, TRIP_TYPE_MESSAGE).value
        require_not_blank(updates, ["name", "destination", "start_date"])

        trip = get_record(db, models.Trip, trip_id)
        for field, value in updates.items():
            setattr(trip, field, value)
        db.commit()
        db.refresh(trip)
        return {"data": trip, "error": None}


@router.delete("/{trip_id}", response_model=schemas.Envelope[schemas.DeletedRecord])
def delete_trip(trip_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to delete trip"):
        trip = get_record(db, models.Trip, trip_id)
        db.delete(trip)
        db.commit()
        return {"data": {"id": trip_id}, "error": None}
