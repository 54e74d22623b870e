"""Balance calculation and debt simplification for trip participants."""

from typing import Dict, List

from sqlalchemy.orm import Session

import models

# Amounts closer to zero than this are treated as settled
SETTLED_EPSILON = 0.005


def round_cents(amount: float) -> float:
    return round(amount * 100) / 100


def calculate_net_balances(db: Session, trip_id: str, participant_ids: List[str]) -> Dict[str, float]:
    """
    Calculate each participant's net position on a trip.

    Positive means the participant is owed money, negative means they owe.
    The payer of an expense is credited the full amount and every split
    participant is debited their share. A settlement moves money from the
    payer ("from") to the receiver ("to"), so it raises the payer's net and
    lowers the receiver's.
    """
    net_balances = {participant_id: 0.0 for participant_id in participant_ids}

    expenses = db.query(models.Expense).filter(
        models.Expense.trip_id == trip_id,
        models.Expense.paid_by_participant_id.in_(participant_ids)
    ).all()

    for expense in expenses:
        payer_id = expense.paid_by_participant_id
        net_balances[payer_id] = net_balances.get(payer_id, 0.0) + expense.amount
        for split in expense.splits:
            net_balances[split.participant_id] = net_balances.get(split.participant_id, 0.0) - split.amount

    settlements = db.query(models.Settlement).filter(models.Settlement.trip_id == trip_id).all()
    for settlement in settlements:
        net_balances[settlement.from_id] = net_balances.get(settlement.from_id, 0.0) + settlement.amount
        net_balances[settlement.to_id] = net_balances.get(settlement.to_id, 0.0) - settlement.amount

    return net_balances


def simplify_debts(balances: List[dict]) -> List[dict]:
    """
    Greedy minimum-transactions plan.

    `balances` holds dicts with id, name and net. Creditors and debtors are
    each sorted largest first and matched pairwise until one side runs out.
    """
    creditors = sorted(
        ({"id": b["id"], "name": b["name"], "amount": b["net"]} for b in balances if b["net"] > SETTLED_EPSILON),
        key=lambda c: c["amount"],
        reverse=True,
    )
    debtors = sorted(
        ({"id": b["id"], "name": b["name"], "amount": -b["net"]} for b in balances if b["net"] < -SETTLED_EPSILON),
        key=lambda d: d["amount"],
        reverse=True,
    )

    transactions = []
    i = 0
    j = 0

    while i < len(creditors) and j < len(debtors):
        creditor = creditors[i]
        debtor = debtors[j]

        amount = min(creditor["amount"], debtor["amount"])
        rounded = round_cents(amount)
        if rounded > 0:
            transactions.append({
                "from": {"id": debtor["id"], "name": debtor["name"]},
                "to": {"id": creditor["id"], "name": creditor["name"]},
                "amount": rounded,
            })

        creditor["amount"] -= amount
        debtor["amount"] -= amount

        if creditor["amount"] < SETTLED_EPSILON:
            i += 1
        if debtor["amount"] < SETTLED_EPSILON:
            j += 1

    return transactions
