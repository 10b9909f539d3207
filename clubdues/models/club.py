"""
club.py

클럽(Club) 및 회원(Member) 모델 정의 파일.

클럽 행에는 회비 설정(FeeSettings)이 컬럼으로 함께 저장된다.
회비 설정은 관리자 저장 시 통째로 교체(whole-object replace)되며,
부분 병합(merge)하지 않는다.

회원 명부(roster)는 승인(APPROVED) + 활성(is_active) 회원만을 대상으로 한다.
클럽/회원의 생성·조직 관리 기능은 이 서비스 범위 밖이며,
회비 엔진은 이 테이블을 조회만 한다.

"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from clubdues.core.config import settings
from clubdues.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApprovalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


"""
클럽(Club) 모델

- fee_* 컬럼 묶음이 FeeSettings 값 객체에 대응
- fee_active_months : 1~12 정수 리스트 (JSON, 정렬/중복 제거 후 저장)
- fee_last_notification_date : 마지막 일괄 알림 발송 시각

"""

class Club(Base):
    __tablename__ = "clubs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    fee_monthly_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    fee_currency: Mapped[str] = mapped_column(String(3), nullable=False, default=lambda: settings.DEFAULT_CURRENCY)
    fee_active_months: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    fee_is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    fee_last_notification_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (
        Index("ix_members_club_id", "club_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    club_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("clubs.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)  # WhatsApp 번호

    approval_status: Mapped[ApprovalStatus] = mapped_column(default=ApprovalStatus.PENDING)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
