from datetime import date, datetime
from typing import Annotated, Any, Generic, Optional, TypeVar, Union

from pydantic import (
    AliasGenerator, BaseModel, BeforeValidator, ConfigDict, Field, StrictBool, StrictFloat,
    StrictInt, StrictStr
)
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def normalize_date(value):
    """Accept YYYY-MM-DD as well as full ISO timestamps (e.g. 2025-12-27T00:00:00.000Z)."""
    if isinstance(value, str) and "T" in value:
        return value.split("T")[0]
    return value


IsoDate = Annotated[date, BeforeValidator(normalize_date)]
Money = Union[StrictInt, StrictFloat]


class RequestModel(BaseModel):
    """Incoming JSON body: camelCase keys, unknown keys rejected."""

    model_config = ConfigDict(alias_generator=to_camel, extra="forbid")


class ResponseModel(BaseModel):
    """Outgoing record: read from ORM attributes, serialized with camelCase keys."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )


class Envelope(BaseModel, Generic[T]):
    data: Optional[T] = None
    error: Optional[str] = None


class DeletedRecord(BaseModel):
    id: str


# Family members

class FamilyMemberCreate(RequestModel):
    name: Optional[StrictStr] = None
    role: Optional[StrictStr] = None
    email: Optional[StrictStr] = None


class FamilyMemberUpdate(RequestModel):
    name: Optional[StrictStr] = None
    role: Optional[StrictStr] = None
    email: Optional[StrictStr] = None


class FamilyMember(ResponseModel):
    id: str
    name: str
    role: str
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class FamilyMemberRef(ResponseModel):
    id: str
    name: str


# Credit cards & benefits

class CardBenefitCreate(RequestModel):
    name: Optional[StrictStr] = None
    value: Optional[Money] = None
    frequency: Optional[StrictStr] = None
    used_amount: Optional[Money] = None
    reset_date: Optional[IsoDate] = None


class CardBenefitUpdate(RequestModel):
    name: Optional[StrictStr] = None
    value: Optional[Money] = None
    frequency: Optional[StrictStr] = None
    used_amount: Optional[Money] = None
    reset_date: Optional[IsoDate] = None


class CardBenefit(ResponseModel):
    id: str
    card_id: str
    name: str
    value: float
    frequency: str
    used_amount: float
    reset_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime


class CreditCardCreate(RequestModel):
    name: Optional[StrictStr] = None
    network: Optional[StrictStr] = None
    last_four: Optional[StrictStr] = None
    annual_fee: Optional[Money] = None
    annual_fee_date: Optional[IsoDate] = None
    points_balance: Optional[StrictInt] = None
    points_expires_at: Optional[IsoDate] = None
    points_name: Optional[StrictStr] = None
    points_cpp_value: Optional[Money] = None
    is_active: Optional[StrictBool] = None


class CreditCardUpdate(CreditCardCreate):
    pass


class CreditCard(ResponseModel):
    id: str
    name: str
    network: str
    last_four: str
    annual_fee: float
    annual_fee_date: Optional[date] = None
    points_balance: int
    points_expires_at: Optional[date] = None
    points_name: str
    points_cpp_value: float
    is_active: bool
    created_at: datetime
    updated_at: datetime
    benefits: list[CardBenefit] = []


class CreditCardRef(ResponseModel):
    id: str
    name: str
    last_four: str
    points_name: str


# Trips

class TripCreate(RequestModel):
    name: Optional[StrictStr] = None
    destination: Optional[StrictStr] = None
    start_date: Optional[IsoDate] = None
    end_date: Optional[IsoDate] = None
    budget: Optional[Money] = None
    type: Optional[StrictStr] = None
    notes: Optional[StrictStr] = None


class TripUpdate(TripCreate):
    pass


class Trip(ResponseModel):
    id: str
    name: str
    destination: str
    start_date: date
    end_date: Optional[date] = None
    budget: Optional[float] = None
    type: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TripSummary(Trip):
    expense_count: int
    total_spent: float


# Expenses

class ExpenseSplitInput(RequestModel):
    participant_id: StrictStr
    amount: Money


class ExpenseCreate(RequestModel):
    family_member_id: Optional[StrictStr] = None
    credit_card_id: Optional[StrictStr] = None
    paid_by_participant_id: Optional[StrictStr] = None
    category: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    amount: Optional[Money] = None
    date: Optional[IsoDate] = None
    points_earned: Optional[StrictInt] = None
    splits: Optional[list[ExpenseSplitInput]] = None


class ExpenseUpdate(ExpenseCreate):
    pass


class ExpenseSplit(ResponseModel):
    id: str
    participant_id: str
    amount: float


class Expense(ResponseModel):
    id: str
    trip_id: str
    family_member_id: Optional[str] = None
    credit_card_id: Optional[str] = None
    paid_by_participant_id: Optional[str] = None
    category: str
    description: str
    amount: float
    date: date
    points_earned: int
    created_at: datetime
    updated_at: datetime
    family_member: Optional[FamilyMemberRef] = None
    credit_card: Optional[CreditCardRef] = None
    splits: list[ExpenseSplit] = []


class TripDetail(Trip):
    expenses: list[Expense] = []


# Participants & settlements

class ParticipantCreate(RequestModel):
    name: Optional[StrictStr] = None
    email: Optional[StrictStr] = None
    family_member_id: Optional[StrictStr] = None
    group_name: Optional[StrictStr] = None


class Participant(ResponseModel):
    id: str
    trip_id: str
    name: str
    email: Optional[str] = None
    family_member_id: Optional[str] = None
    group_name: Optional[str] = None
    created_at: datetime
    family_member: Optional[FamilyMemberRef] = None


class ParticipantRef(ResponseModel):
    id: str
    name: str


class SettlementCreate(RequestModel):
    from_id: Optional[StrictStr] = None
    to_id: Optional[StrictStr] = None
    # Any JSON value; positivity and type are checked by the handler
    amount: Any = None
    note: Optional[StrictStr] = None


class Settlement(ResponseModel):
    id: str
    trip_id: str
    from_id: str
    to_id: str
    amount: float
    note: Optional[str] = None
    settled_at: Optional[datetime] = None
    created_at: datetime
    from_participant: ParticipantRef = Field(serialization_alias="from")
    to_participant: ParticipantRef = Field(serialization_alias="to")


# Itinerary

class ItineraryItemCreate(RequestModel):
    date: Optional[IsoDate] = None
    title: Optional[StrictStr] = None
    type: Optional[StrictStr] = None
    location: Optional[StrictStr] = None
    start_time: Optional[StrictStr] = None
    end_time: Optional[StrictStr] = None
    notes: Optional[StrictStr] = None
    sort_order: Optional[StrictInt] = None


class ItineraryItemUpdate(ItineraryItemCreate):
    pass


class ItineraryItem(ResponseModel):
    id: str
    trip_id: str
    date: date
    title: str
    type: str
    location: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notes: Optional[str] = None
    sort_order: int
    created_at: datetime
    updated_at: datetime


# Balance

class BalanceEntry(ResponseModel):
    participant_id: str
    name: str
    net: float


class Transaction(ResponseModel):
    from_participant: ParticipantRef = Field(serialization_alias="from")
    to_participant: ParticipantRef = Field(serialization_alias="to")
    amount: float


class TripBalance(ResponseModel):
    balances: list[BalanceEntry]
    transactions: list[Transaction]


# Receipts

class ReceiptUpload(BaseModel):
    path: str


class ReceiptParseRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel)

    # Loosely typed so a non-string path gets the same message as a missing one
    receipt_path: Any = None


class ReceiptParseResult(BaseModel):
    amount: Optional[float] = None
    date: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
