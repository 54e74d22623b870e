"""Balances router: per-participant net positions and the settle-up plan for a trip."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from utils.balances import calculate_net_balances, round_cents, simplify_debts
from utils.errors import persistence_errors
from utils.validation import get_trip_or_404


router = APIRouter(tags=["balances"])


@router.get("/trips/{trip_id}/balance", response_model=schemas.Envelope[schemas.TripBalance])
def get_trip_balance(trip_id: str, db: Session = Depends(get_db)):
    """Net balance per participant plus the fewest transfers that settle everyone up."""
    with persistence_errors(db, "Failed to compute balance"):
        get_trip_or_404(db, trip_id)

        participants = db.query(models.TripParticipant).filter(
            models.TripParticipant.trip_id == trip_id
        ).order_by(models.TripParticipant.created_at).all()

        if not participants:
            return {"data": schemas.TripBalance(balances=[], transactions=[]), "error": None}

        net_balances = calculate_net_balances(db, trip_id, [p.id for p in participants])
        balances = [
            {"id": p.id, "name": p.name, "net": round_cents(net_balances.get(p.id, 0.0))}
            for p in participants
        ]
        transactions = simplify_debts(balances)

        result = schemas.TripBalance(
            balances=[
                schemas.BalanceEntry(participant_id=b["id"], name=b["name"], net=b["net"])
                for b in balances
            ],
            transactions=[
                schemas.Transaction(from_participant=t["from"], to_participant=t["to"], amount=t["amount"])
                for t in transactions
            ],
        )
        return {"data": result, "error": None}
