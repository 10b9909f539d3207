# tests/helpers.py
import uuid
from decimal import Decimal
from sqlalchemy.orm import Session

from clubdues.models.club import ApprovalStatus, Club, Member
from clubdues.repositories.sql import SqlChargeStore, SqlClubRepository, SqlMemberRepository, SqlPaymentLedger


def create_club_in_db(
    db: Session,
    *,
    name: str = "Chess Club",
    amount: str = "10.00",
    currency: str = "USD",
    active_months=(1, 2, 3),
    is_active: bool = True,
) -> Club:
    club = Club(
        name=name,
        fee_monthly_amount=Decimal(amount),
        fee_currency=currency,
        fee_active_months=list(active_months),
        fee_is_active=is_active,
    )
    db.add(club)
    db.commit()
    db.refresh(club)
    return club


def create_member_in_db(
    db: Session,
    club: Club,
    *,
    name: str | None = None,
    status: ApprovalStatus = ApprovalStatus.APPROVED,
    is_active: bool = True,
) -> Member:
    member = Member(
        club_id=club.id,
        name=name or f"member-{uuid.uuid4().hex[:6]}",
        phone="+1-555-0100",
        approval_status=status,
        is_active=is_active,
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def repos(db: Session) -> dict:
    """서비스 함수 테스트용 저장소 묶음"""
    return {
        "clubs": SqlClubRepository(db),
        "members": SqlMemberRepository(db),
        "charges": SqlChargeStore(db),
        "ledger": SqlPaymentLedger(db),
    }


def money(value) -> Decimal:
    # JSON 응답의 Decimal은 문자열로 직렬화됨
    return Decimal(str(value))
