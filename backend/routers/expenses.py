"""Expenses router: create, read, update, delete expenses within a trip."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload

import models
import schemas
from database import get_db
from utils.errors import ValidationError, persistence_errors
from utils.validation import (
    clean_str, get_owned_or_404, get_participant_on_trip, get_trip_or_404, list_choices,
    require_enum, require_fields, require_not_blank
)


router = APIRouter(prefix="/trips/{trip_id}/expenses", tags=["expenses"])

CATEGORY_MESSAGE = f"category must be one of: {list_choices(models.ExpenseCategory)}"


def build_splits(db: Session, trip_id: str, splits: list[dict]) -> list[models.ExpenseSplit]:
    """Validate split rows against the trip and turn them into ExpenseSplit models."""
    seen = set()
    rows = []
    for split in splits:
        participant_id = split["participant_id"]
        if participant_id in seen:
            raise ValidationError("splits must not repeat a participant")
        seen.add(participant_id)
        get_participant_on_trip(db, trip_id, participant_id, "splits")
        rows.append(models.ExpenseSplit(participant_id=participant_id, amount=split["amount"]))
    return rows


def load_expense(db: Session, expense_id: str) -> models.Expense:
    return db.query(models.Expense).options(
        selectinload(models.Expense.family_member),
        selectinload(models.Expense.credit_card),
        selectinload(models.Expense.splits),
    ).filter(models.Expense.id == expense_id).one()


@router.get("", response_model=schemas.Envelope[list[schemas.Expense]])
def list_expenses(trip_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to fetch expenses"):
        expenses = db.query(models.Expense).options(
            selectinload(models.Expense.family_member),
            selectinload(models.Expense.credit_card),
            selectinload(models.Expense.splits),
        ).filter(
            models.Expense.trip_id == trip_id
        ).order_by(models.Expense.date.desc(), models.Expense.created_at.desc()).all()
        return {"data": expenses, "error": None}


@router.post("", response_model=schemas.Envelope[schemas.Expense], status_code=status.HTTP_201_CREATED)
def create_expense(trip_id: str, payload: schemas.ExpenseCreate, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to create expense"):
        description = clean_str(payload.description)
        require_fields(
            "category, description, amount, and date are required",
            payload.category, description, payload.amount, payload.date
        )
        category = require_enum(payload.category, models.ExpenseCategory, CATEGORY_MESSAGE)

        get_trip_or_404(db, trip_id)
        if payload.paid_by_participant_id is not None:
            get_participant_on_trip(db, trip_id, payload.paid_by_participant_id, "paidByParticipantId")
        splits = build_splits(db, trip_id, [s.model_dump() for s in payload.splits or []])

        expense = models.Expense(
            trip_id=trip_id,
            family_member_id=payload.family_member_id,
            credit_card_id=payload.credit_card_id,
            paid_by_participant_id=payload.paid_by_participant_id,
            category=category.value,
            description=description,
            amount=payload.amount,
            date=payload.date,
            points_earned=payload.points_earned if payload.points_earned is not None else 0,
            splits=splits,
        )
        db.add(expense)
        db.commit()
        return {"data": load_expense(db, expense.id), "error": None}


@router.patch("/{expense_id}", response_model=schemas.Envelope[schemas.Expense])
def update_expense(
    trip_id: str,
    expense_id: str,
    payload: schemas.ExpenseUpdate,
    db: Session = Depends(get_db)
):
    with persistence_errors(db, "Failed to update expense"):
        updates = payload.model_dump(exclude_unset=True)
        if "description" in updates:
            updates["description"] = clean_str(updates["description"])
        if "category" in updates:
            updates["category"] = require_enum(
                updates["category"], models.ExpenseCategory, CATEGORY_MESSAGE
            ).value
        require_not_blank(updates, ["description", "amount", "date", "points_earned"])

        expense = get_owned_or_404(db, models.Expense, expense_id, "trip_id", trip_id, "Expense")
        if updates.get("paid_by_participant_id") is not None:
            get_participant_on_trip(db, trip_id, updates["paid_by_participant_id"], "paidByParticipantId")

        splits = updates.pop("splits", None)
        if "splits" in payload.model_fields_set:
            new_splits = build_splits(db, trip_id, splits or [])
            # Old rows must be gone before the replacements hit the (expense, participant) constraint
            expense.splits.clear()
            db.flush()
            expense.splits.extend(new_splits)

        for field, value in updates.items():
            setattr(expense, field, value)
        db.commit()
        return {"data": load_expense(db, expense_id), "error": None}


@router.delete("/{expense_id}", response_model=schemas.Envelope[schemas.DeletedRecord])
def delete_expense(trip_id: str, expense_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to delete expense"):
        expense = get_owned_or_404(db, models.Expense, expense_id, "trip_id", trip_id, "Expense")
        db.delete(expense)
        db.commit()
        return {"data": {"id": expense_id}, "error": None}
