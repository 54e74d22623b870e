import models


def expense_payload(**overrides):
    return {
        "category": "hotel",
        "description": "Hilton Garden Inn",
        "amount": 189.99,
        "date": "2025-07-02",
        **overrides,
    }


def create_expense(client, trip_id, **overrides):
    response = client.post(f"/trips/{trip_id}/expenses", json=expense_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_expense_with_member_and_card(client, db_session, test_trip, test_card):
    member = models.FamilyMember(name="Alice", role="parent")
    db_session.add(member)
    db_session.commit()

    expense = create_expense(
        client, test_trip.id,
        familyMemberId=member.id, creditCardId=test_card.id, pointsEarned=570,
    )
    assert expense["tripId"] == test_trip.id
    assert expense["pointsEarned"] == 570
    assert expense["familyMember"] == {"id": member.id, "name": "Alice"}
    assert expense["creditCard"]["lastFour"] == "1234"
    assert expense["splits"] == []


def test_create_expense_defaults_points(client, test_trip):
    expense = create_expense(client, test_trip.id)
    assert expense["pointsEarned"] == 0
    assert expense["paidByParticipantId"] is None


def test_create_expense_requires_fields(client, test_trip):
    response = client.post(f"/trips/{test_trip.id}/expenses", json={"category": "food"})
    assert response.status_code == 400
    assert response.json()["error"] == "category, description, amount, and date are required"


def test_create_expense_rejects_unknown_category(client, test_trip):
    response = client.post(f"/trips/{test_trip.id}/expenses", json=expense_payload(category="souvenirs"))
    assert response.status_code == 400
    assert response.json()["error"] == (
        "category must be one of: hotel, flight, food, gas, ev_charging, tours, shopping, other"
    )


def test_create_expense_on_missing_trip(client):
    response = client.post("/trips/missing/expenses", json=expense_payload())
    assert response.status_code == 404
    assert response.json()["error"] == "Trip not found"


def test_create_expense_with_payer_and_splits(client, test_trip, make_participant):
    alex = make_participant(test_trip, "Alex")
    blair = make_participant(test_trip, "Blair")

    expense = create_expense(
        client, test_trip.id,
        amount=100,
        paidByParticipantId=alex.id,
        splits=[
            {"participantId": alex.id, "amount": 50},
            {"participantId": blair.id, "amount": 50},
        ],
    )
    assert expense["paidByParticipantId"] == alex.id
    assert sorted(s["participantId"] for s in expense["splits"]) == sorted([alex.id, blair.id])


def test_create_expense_rejects_payer_from_other_trip(client, db_session, test_trip, make_participant):
    other_trip = models.Trip(name="Other", destination="Elsewhere", start_date=test_trip.start_date, type="local")
    db_session.add(other_trip)
    db_session.commit()
    stranger = make_participant(other_trip, "Stranger")

    response = client.post(
        f"/trips/{test_trip.id}/expenses",
        json=expense_payload(paidByParticipantId=stranger.id),
    )
    assert response.status_code == 404
    assert response.json()["error"] == "paidByParticipantId participant not found on this trip"


def test_create_expense_rejects_repeated_split_participant(client, test_trip, make_participant):
    alex = make_participant(test_trip, "Alex")
    response = client.post(f"/trips/{test_trip.id}/expenses", json=expense_payload(
        splits=[
            {"participantId": alex.id, "amount": 10},
            {"participantId": alex.id, "amount": 10},
        ]
    ))
    assert response.status_code == 400
    assert response.json()["error"] == "splits must not repeat a participant"


def test_list_expenses_newest_first(client, test_trip):
    create_expense(client, test_trip.id, description="First night", date="2025-07-01")
    create_expense(client, test_trip.id, description="Second night", date="2025-07-02")

    response = client.get(f"/trips/{test_trip.id}/expenses")
    assert response.status_code == 200
    assert [e["description"] for e in response.json()["data"]] == ["Second night", "First night"]


def test_update_expense(client, test_trip):
    expense = create_expense(client, test_trip.id)
    response = client.patch(
        f"/trips/{test_trip.id}/expenses/{expense['id']}",
        json={"amount": 210, "category": "other"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["amount"] == 210
    assert data["category"] == "other"
    assert data["description"] == "Hilton Garden Inn"


def test_update_expense_replaces_splits(client, test_trip, make_participant):
    alex = make_participant(test_trip, "Alex")
    blair = make_participant(test_trip, "Blair")
    expense = create_expense(client, test_trip.id, amount=60, paidByParticipantId=alex.id, splits=[
        {"participantId": alex.id, "amount": 30},
        {"participantId": blair.id, "amount": 30},
    ])

    response = client.patch(f"/trips/{test_trip.id}/expenses/{expense['id']}", json={
        "splits": [{"participantId": blair.id, "amount": 60}],
    })
    assert response.status_code == 200
    splits = response.json()["data"]["splits"]
    assert len(splits) == 1
    assert splits[0]["participantId"] == blair.id
    assert splits[0]["amount"] == 60


def test_update_expense_cannot_clear_amount(client, test_trip):
    expense = create_expense(client, test_trip.id)
    response = client.patch(f"/trips/{test_trip.id}/expenses/{expense['id']}", json={"amount": None})
    assert response.status_code == 400
    assert response.json()["error"] == "amount cannot be empty"


def test_update_expense_under_other_trip_is_not_found(client, db_session, test_trip):
    expense = create_expense(client, test_trip.id)
    other_trip = models.Trip(name="Other", destination="Elsewhere", start_date=test_trip.start_date, type="local")
    db_session.add(other_trip)
    db_session.commit()

    response = client.patch(f"/trips/{other_trip.id}/expenses/{expense['id']}", json={"amount": 1})
    assert response.status_code == 404
    assert response.json()["error"] == "Expense not found"


def test_delete_expense(client, db_session, test_trip, make_participant):
    alex = make_participant(test_trip, "Alex")
    expense = create_expense(client, test_trip.id, splits=[{"participantId": alex.id, "amount": 189.99}])

    response = client.delete(f"/trips/{test_trip.id}/expenses/{expense['id']}")
    assert response.status_code == 200
    assert response.json()["data"] == {"id": expense["id"]}
    db_session.expire_all()
    assert db_session.query(models.Expense).count() == 0
    assert db_session.query(models.ExpenseSplit).count() == 0


def test_delete_missing_expense(client, test_trip):
    response = client.delete(f"/trips/{test_trip.id}/expenses/missing")
    assert response.status_code == 404
    assert response.json()["error"] == "Expense not found"
