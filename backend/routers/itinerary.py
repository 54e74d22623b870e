"""Itinerary router: day-by-day plan items for a trip."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from utils.errors import persistence_errors
from utils.validation import (
    clean_str, get_owned_or_404, get_trip_or_404, list_choices, require_enum, require_fields,
    require_not_blank
)


router = APIRouter(prefix="/trips/{trip_id}/itinerary", tags=["itinerary"])

ITINERARY_TYPE_MESSAGE = f"type must be one of: {list_choices(models.ItineraryType)}"


@router.get("", response_model=schemas.Envelope[list[schemas.ItineraryItem]])
def list_itinerary(trip_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to fetch itinerary"):
        get_trip_or_404(db, trip_id)
        items = db.query(models.ItineraryItem).filter(
            models.ItineraryItem.trip_id == trip_id
        ).order_by(
            models.ItineraryItem.date,
            models.ItineraryItem.sort_order,
            models.ItineraryItem.created_at,
        ).all()
        return {"data": items, "error": None}


@router.post("", response_model=schemas.Envelope[schemas.ItineraryItem], status_code=status.HTTP_201_CREATED)
def create_itinerary_item(trip_id: str, payload: schemas.ItineraryItemCreate, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to create itinerary item"):
        title = clean_str(payload.title)
        require_fields("title is required", title)
        require_fields("date is required", payload.date)
        item_type = require_enum(payload.type, models.ItineraryType, ITINERARY_TYPE_MESSAGE)

        get_trip_or_404(db, trip_id)

        item = models.ItineraryItem(
            trip_id=trip_id,
            date=payload.date,
            title=title,
            type=item_type.value,
            location=payload.location,
            start_time=payload.start_time,
            end_time=payload.end_time,
            notes=payload.notes,
            sort_order=payload.sort_order if payload.sort_order is not None else 0,
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return {"data": item, "error": None}


@router.patch("/{item_id}", response_model=schemas.Envelope[schemas.ItineraryItem])
def update_itinerary_item(
    trip_id: str,
    item_id: str,
    payload: schemas.ItineraryItemUpdate,
    db: Session = Depends(get_db)
):
    with persistence_errors(db, "Failed to update itinerary item"):
        item = get_owned_or_404(db, models.ItineraryItem, item_id, "trip_id", trip_id, "Itinerary item")

        updates = payload.model_dump(exclude_unset=True)
        if "title" in updates:
            updates["title"] = clean_str(updates["title"])
        if "type" in updates:
            updates["type"] = require_enum(updates["type"], models.ItineraryType, ITINERARY_TYPE_MESSAGE).value
        require_not_blank(updates, ["title", "date", "sort_order"])

        for field, value in updates.items():
            setattr(item, field, value)
        db.commit()
        db.refresh(item)
        return {"data": item, "error": None}


@router.delete("/{item_id}", response_model=schemas.Envelope[schemas.DeletedRecord])
def delete_itinerary_item(trip_id: str, item_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to delete itinerary item"):
        item = get_owned_or_404(db, models.ItineraryItem, item_id, "trip_id", trip_id, "Itinerary item")
        db.delete(item)
        db.commit()
        return {"data": {"id": item_id}, "error": None}
