import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from clubdues.db.base import Base
from clubdues.models.club import utcnow


class RecurringCharge(Base):
    """월 회비 '청구' 레코드 (회원 1명 x 1개월).

    (club_id, user_id, month, year) 조합은 유일하다.
    납부 상태(PAID/PENDING/OVERDUE)는 저장하지 않고 조회 시점에 계산한다.
    """

    __tablename__ = "recurring_charges"
    __table_args__ = (
        UniqueConstraint("club_id", "user_id", "month", "year", name="uq_recurring_charges_key"),
        Index("ix_recurring_charges_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    club_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("clubs.id"), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("members.id"), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    paid_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)  # CASH/TRANSFER/ETC
    memo: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class CustomCharge(Base):
    """일회성 '추가 청구' 레코드.

    - 대상 회원은 custom_charge_targets 에 저장 (비어 있으면 클럽 전체 회원 대상)
    - 납부 회원은 custom_charge_payments 에 저장
    """

    __tablename__ = "custom_charges"
    __table_args__ = (
        Index("ix_custom_charges_club_id", "club_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    club_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("clubs.id"), nullable=False)

    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class CustomChargeTarget(Base):
    __tablename__ = "custom_charge_targets"

    charge_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("custom_charges.id"), primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("members.id"), primary_key=True)


class CustomChargePayment(Base):
    """추가 청구 '납부' 레코드.

    (charge_id, user_id) 유일 제약으로 이중 납부를 DB 단에서 차단한다.
    """

    __tablename__ = "custom_charge_payments"
    __table_args__ = (
        UniqueConstraint("charge_id", "user_id", name="uq_custom_charge_payments_charge_user"),
        Index("ix_custom_charge_payments_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    charge_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("custom_charges.id"), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("members.id"), nullable=False)

    paid_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    memo: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
