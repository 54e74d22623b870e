"""Family router: list, create, update, delete family members."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from utils.errors import persistence_errors
from utils.validation import (
    clean_str, describe_choices, get_record, require_enum, require_fields, require_not_blank
)


router = APIRouter(prefix="/family", tags=["family"])

ROLE_MESSAGE = f"Role must be {describe_choices(models.FamilyRole)}"


@router.get("", response_model=schemas.Envelope[list[schemas.FamilyMember]])
def list_family_members(db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to fetch family members"):
        members = db.query(models.FamilyMember).order_by(models.FamilyMember.created_at).all()
        return {"data": members, "error": None}


@router.post(
    "",
    response_model=schemas.Envelope[schemas.FamilyMember],
    status_code=status.HTTP_201_CREATED,
)
def create_family_member(payload: schemas.FamilyMemberCreate, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to create family member"):
        name = clean_str(payload.name)
        require_fields("Name and role are required", name, payload.role)
        role = require_enum(payload.role, models.FamilyRole, ROLE_MESSAGE)

        member = models.FamilyMember(name=name, role=role.value, email=payload.email)
        db.add(member)
        db.commit()
        db.refresh(member)
        return {"data": member, "error": None}


@router.patch("/{member_id}", response_model=schemas.Envelope[schemas.FamilyMember])
def update_family_member(
    member_id: str,
    payload: schemas.FamilyMemberUpdate,
    db: Session = Depends(get_db)
):
    with persistence_errors(db, "Failed to update family member"):
        updates = payload.model_dump(exclude_unset=True)
        if "name" in updates:
            updates["name"] = clean_str(updates["name"])
        require_not_blank(updates, ["name"])
        if updates.get("role") is not None:
            updates["role"] = require_enum(updates["role"], models.FamilyRole, ROLE_MESSAGE).value
        require_not_blank(updates, ["role"])

        member = get_record(db, models.FamilyMember, member_id)
        for field, value in updates.items():
            setattr(member, field, value)
        db.commit()
        db.refresh(member)
        return {"data": member, "error": None}


@router.delete("/{member_id}", response_model=schemas.Envelope[schemas.DeletedRecord])
def delete_family_member(member_id: str, db: Session = Depends(get_db)):
    with persistence_errors(db, "Failed to delete family member"):
        member = get_record(db, models.FamilyMember, member_id)
        db.delete(member)
        db.commit()
        return {"data": {"id": member_id}, "error": None}
