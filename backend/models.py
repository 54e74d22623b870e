import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
)
from sqlalchemy.orm import relationship

from database import Base


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FamilyRole(str, enum.Enum):
    PARENT = "parent"
    TEEN = "teen"


class BenefitFrequency(str, enum.Enum):
    ANNUAL = "annual"
    MONTHLY = "monthly"
    PER_TRIP = "per_trip"


class TripType(str, enum.Enum):
    ROAD_TRIP = "road_trip"
    FLIGHT = "flight"
    LOCAL = "local"


class ItineraryType(str, enum.Enum):
    ACCOMMODATION = "accommodation"
    ACTIVITY = "activity"
    TRANSPORT = "transport"
    FLIGHT = "flight"


class ExpenseCategory(str, enum.Enum):
    HOTEL = "hotel"
    FLIGHT = "flight"
    FOOD = "food"
    GAS = "gas"
    EV_CHARGING = "ev_charging"
    TOURS = "tours"
    SHOPPING = "shopping"
    OTHER = "other"


class FamilyMember(Base):
    __tablename__ = "family_members"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)  # FamilyRole value
    email = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class CreditCard(Base):
    __tablename__ = "credit_cards"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    network = Column(String, nullable=False)
    last_four = Column(String(4), nullable=False)
    annual_fee = Column(Float, nullable=False)
    annual_fee_date = Column(Date, nullable=True)
    points_balance = Column(Integer, default=0, nullable=False)
    points_expires_at = Column(Date, nullable=True)
    points_name = Column(String, nullable=False)
    points_cpp_value = Column(Float, nullable=False)  # cents per point
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    benefits = relationship(
        "CardBenefit",
        order_by="CardBenefit.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class CardBenefit(Base):
    __tablename__ = "card_benefits"

    id = Column(String, primary_key=True, default=generate_id)
    card_id = Column(String, ForeignKey("credit_cards.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    value = Column(Float, nullable=False)
    frequency = Column(String, nullable=False)  # BenefitFrequency value
    used_amount = Column(Float, default=0, nullable=False)
    reset_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    budget = Column(Float, nullable=True)
    type = Column(String, nullable=False)  # TripType value
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    expenses = relationship(
        "Expense",
        order_by="Expense.date.desc()",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    participants = relationship("TripParticipant", cascade="all, delete-orphan", passive_deletes=True)
    itinerary_items = relationship("ItineraryItem", cascade="all, delete-orphan", passive_deletes=True)
    settlements = relationship("Settlement", cascade="all, delete-orphan", passive_deletes=True)


class TripParticipant(Base):
    __tablename__ = "trip_participants"
    __table_args__ = (
        UniqueConstraint("trip_id", "name", name="uq_trip_participant_name"),
    )

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    family_member_id = Column(String, ForeignKey("family_members.id", ondelete="SET NULL"), nullable=True)
    group_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    family_member = relationship("FamilyMember")


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    family_member_id = Column(String, ForeignKey("family_members.id", ondelete="SET NULL"), nullable=True)
    credit_card_id = Column(String, ForeignKey("credit_cards.id", ondelete="SET NULL"), nullable=True)
    paid_by_participant_id = Column(
        String, ForeignKey("trip_participants.id", ondelete="SET NULL"), nullable=True
    )
    category = Column(String, nullable=False)  # ExpenseCategory value
    description = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    points_earned = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    family_member = relationship("FamilyMember")
    credit_card = relationship("CreditCard")
    splits = relationship("ExpenseSplit", cascade="all, delete-orphan", passive_deletes=True)


class ExpenseSplit(Base):
    __tablename__ = "expense_splits"
    __table_args__ = (
        UniqueConstraint("expense_id", "participant_id", name="uq_expense_split_participant"),
    )

    id = Column(String, primary_key=True, default=generate_id)
    expense_id = Column(String, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    participant_id = Column(
        String, ForeignKey("trip_participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount = Column(Float, nullable=False)


class ItineraryItem(Base):
    __tablename__ = "itinerary_items"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    title = Column(String, nullable=False)
    type = Column(String, nullable=False)  # ItineraryType value
    location = Column(String, nullable=True)
    start_time = Column(String, nullable=True)  # "HH:MM"
    end_time = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Settlement(Base):
    __tablename__ = "settlements"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    from_id = Column(String, ForeignKey("trip_participants.id", ondelete="CASCADE"), nullable=False)
    to_id = Column(String, ForeignKey("trip_participants.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Float, nullable=False)
    note = Column(String, nullable=True)
    settled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    from_participant = relationship("TripParticipant", foreign_keys=[from_id])
    to_participant = relationship("TripParticipant", foreign_keys=[to_id])
