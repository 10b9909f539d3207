import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional, List

from pydantic import BaseModel, Field, ConfigDict, computed_field

from clubdues.core.config import settings


class ChargeStatus(str, Enum):
    PAID = "PAID"
    PENDING = "PENDING"
    OVERDUE = "OVERDUE"


ChargeKind = Literal["recurring", "custom"]
PaymentMethod = Literal["CASH", "TRANSFER", "ETC"]


class FeeSettings(BaseModel):
    monthly_fee_amount: Decimal
    currency: str
    active_months: List[int] = Field(default_factory=list)
    is_active: bool = False
    last_notification_date: Optional[datetime] = None


class FeeSettingsUpdateRequest(BaseModel):
    monthly_fee_amount: Decimal = Field(..., examples=["10.00"])
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY, examples=["USD"])
    active_months: List[int] = Field(default_factory=list, examples=[[1, 2, 3]])
    is_active: bool = True


class ClubResponse(BaseModel):
    id: uuid.UUID
    name: str
    fee_settings: FeeSettings


class GenerateFeesRequest(BaseModel):
    year: int = Field(..., examples=[2026])


class GenerateFeesResponse(BaseModel):
    year: int
    created: int


class RecurringChargeResponse(BaseModel):
    id: uuid.UUID
    club_id: uuid.UUID
    user_id: uuid.UUID
    month: int
    year: int
    amount: Decimal
    due_date: date
    paid_date: Optional[datetime]
    payment_method: Optional[str]
    memo: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class CustomChargeCreateRequest(BaseModel):
    description: str = Field(..., examples=["Tournament registration"])
    amount: Decimal = Field(..., examples=["25.00"])
    due_date: date
    applied_to_user_ids: List[uuid.UUID] = Field(default_factory=list)


class CustomChargeRecord(BaseModel):
    """추가 청구 + 대상/납부 회원 집합.

    applied_to_user_ids 가 비어 있으면 클럽 전체 회원 대상.
    paid_dates 는 납부 회원별 납부 시각 (paid_user_ids 와 같은 키 집합).
    """

    id: uuid.UUID
    club_id: uuid.UUID
    description: str
    amount: Decimal
    due_date: date
    applied_to_user_ids: set[uuid.UUID] = Field(default_factory=set)
    paid_user_ids: set[uuid.UUID] = Field(default_factory=set)
    paid_dates: dict[uuid.UUID, datetime] = Field(default_factory=dict)
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    def applies_to(self, user_id: uuid.UUID) -> bool:
        return not self.applied_to_user_ids or user_id in self.applied_to_user_ids


class ChargeRef(BaseModel):
    kind: ChargeKind
    charge_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None  # custom 청구는 필수


class PaymentCreateRequest(ChargeRef):
    paid_date: Optional[datetime] = None
    method: PaymentMethod = "TRANSFER"
    memo: Optional[str] = None


class PaymentResponse(BaseModel):
    kind: ChargeKind
    charge_id: uuid.UUID
    user_id: uuid.UUID
    amount: Decimal
    paid_date: datetime
    method: Optional[str]
    memo: Optional[str]


class MemberBalance(BaseModel):
    user_id: uuid.UUID
    club_id: uuid.UUID
    total_owed: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    pending_charges: Decimal = Decimal("0")
    overdue_charges: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    last_payment_date: Optional[datetime] = None
    as_of: datetime


class MemberChargeLine(BaseModel):
    kind: ChargeKind
    charge_id: uuid.UUID
    description: str
    amount: Decimal
    due_date: date
    paid_date: Optional[datetime]
    status: ChargeStatus


class BatchFailure(BaseModel):
    user_id: uuid.UUID
    kind: str
    message: str


class BalanceBatchResult(BaseModel):
    balances: List[MemberBalance] = Field(default_factory=list)
    failures: List[BatchFailure] = Field(default_factory=list)

    @computed_field
    @property
    def succeeded(self) -> int:
        return len(self.balances)


class NotifyResult(BaseModel):
    succeeded: int = 0
    failures: List[BatchFailure] = Field(default_factory=list)
    notified_at: Optional[datetime] = None


class NotificationMessageResponse(BaseModel):
    user_id: uuid.UUID
    message: str
