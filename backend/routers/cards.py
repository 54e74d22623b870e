"""Cards router: credit cards and their benefits."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload

import models
import schemas
from database import get_db
from utils.errors import NotFoundError, persistence_errors
from utils.validation import (
    clean_str, describe_choices, get_owned_or_404, get_record, require_enum, require_fields,
    require_last_four, require_not_blank
)


router = APIRouter(prefix="/cards", tags=["cards"])

FREQUENCY_MESSAGE = f"frequency must be {describe_choices(models.BenefitFrequency)}"

CARD_REQUIRED_FIELDS = ["name", "network", "last_four", "annual_fee", "points_name", "points_cpp_value"]


@router.get("", response_model=schemas.Envelope[list[schemas.CreditCard]])
def list_cards(db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to fetch credit cards"):
        cards = db.query(models.CreditCard).options(
            selectinload(models.CreditCard.benefits)
        ).order_by(models.CreditCard.created_at).all()
        return {"data": cards, "error": None}


@router.post(
    "",
    response_model=schemas.Envelope[schemas.CreditCard],
    status_code=status.HTTP_201_CREATED,
)
def create_card(payload: schemas.CreditCardCreate, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to create credit card"):
        name = clean_str(payload.name)
        network = clean_str(payload.network)
        points_name = clean_str(payload.points_name)
        require_fields(
            "name, network, lastFour, annualFee, pointsName, and pointsCppValue are required",
            name, network, payload.last_four, payload.annual_fee, points_name, payload.points_cpp_value
        )
        last_four = require_last_four(payload.last_four)

        card = models.CreditCard(
            name=name,
            network=network,
            last_four=last_four,
            annual_fee=payload.annual_fee,
            annual_fee_date=payload.annual_fee_date,
            points_balance=payload.points_balance if payload.points_balance is not None else 0,
            points_expires_at=payload.points_expires_at,
            points_name=points_name,
            points_cpp_value=payload.points_cpp_value,
            is_active=payload.is_active if payload.is_active is not None else True,
        )
        db.add(card)
        db.commit()
        db.refresh(card)
        return {"data": card, "error": None}


@router.get("/{card_id}", response_model=schemas.Envelope[schemas.CreditCard])
def get_card(card_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to fetch credit card"):
        card = db.query(models.CreditCard).filter(models.CreditCard.id == card_id).first()
        if not card:
            raise NotFoundError("Credit card not found")
        return {"data": card, "error": None}


@router.patch("/{card_id}", response_model=schemas.Envelope[schemas.CreditCard])
def update_card(card_id: str, payload: schemas.CreditCardUpdate, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to update credit card"):
        updates = payload.model_dump(exclude_unset=True)
        for field in ("name", "network", "points_name"):
            if field in updates:
                updates[field] = clean_str(updates[field])
        require_not_blank(updates, CARD_REQUIRED_FIELDS + ["points_balance", "is_active"])
        if "last_four" in updates:
            require_last_four(updates["last_four"])

        card = get_record(db, models.CreditCard, card_id)
        for field, value in updates.items():
            setattr(card, field, value)
        db.commit()
        db.refresh(card)
        return {"data": card, "error": None}


@router.delete("/{card_id}", response_model=schemas.Envelope[schemas.DeletedRecord])
def delete_card(card_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to delete credit card"):
        card = get_record(db, models.CreditCard, card_id)
        db.delete(card)
        db.commit()
        return {"data": {"id": card_id}, "error": None}


@router.get("/{card_id}/benefits", response_model=schemas.Envelope[list[schemas.CardBenefit]])
def list_benefits(card_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to fetch card benefits"):
        benefits = db.query(models.CardBenefit).filter(
            models.CardBenefit.card_id == card_id
        ).order_by(models.CardBenefit.created_at).all()
        return {"data": benefits, "error": None}


@router.post(
    "/{card_id}/benefits",
    response_model=schemas.Envelope[schemas.CardBenefit],
    status_code=status.HTTP_201_CREATED,
)
def create_benefit(card_id: str, payload: schemas.CardBenefitCreate, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to create card benefit"):
        name = clean_str(payload.name)
        require_fields("name, value, and frequency are required", name, payload.value, payload.frequency)
        frequency = require_enum(payload.frequency, models.BenefitFrequency, FREQUENCY_MESSAGE)

        # A benefit for an unknown card fails on the foreign key and reports the fixed message
        benefit = models.CardBenefit(
            card_id=card_id,
            name=name,
            value=payload.value,
            frequency=frequency.value,
            used_amount=payload.used_amount if payload.used_amount is not None else 0,
            reset_date=payload.reset_date,
        )
        db.add(benefit)
        db.commit()
        db.refresh(benefit)
        return {"data": benefit, "error": None}


@router.patch("/{card_id}/benefits/{benefit_id}", response_model=schemas.Envelope[schemas.CardBenefit])
def update_benefit(
    card_id: str,
    benefit_id: str,
    payload: schemas.CardBenefitUpdate,
    db: Session = Depends(get_db)
):
    with persistence_errors(db, "Failed to update card benefit"):
        updates = payload.model_dump(exclude_unset=True)
        if "name" in updates:
            updates["name"] = clean_str(updates["name"])
        if "frequency" in updates:
            updates["frequency"] = require_enum(
                updates["frequency"], models.BenefitFrequency, FREQUENCY_MESSAGE
            ).value
        require_not_blank(updates, ["name", "value", "used_amount"])

        benefit = get_owned_or_404(db, models.CardBenefit, benefit_id, "card_id", card_id, "Card benefit")
        for field, value in updates.items():
            setattr(benefit, field, value)
        db.commit()
        db.refresh(benefit)
        return {"data": benefit, "error": None}


@router.delete("/{card_id}/benefits/{benefit_id}", response_model=schemas.Envelope[schemas.DeletedRecord])
def delete_benefit(card_id: str, benefit_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to delete card benefit"):
        benefit = get_owned_or_404(db, models.CardBenefit, benefit_id, "card_id", card_id, "Card benefit")
        db.delete(benefit)
        db.commit()
        return {"data": {"id": benefit_id}, "error": None}
