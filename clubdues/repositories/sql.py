"""
repositories/sql.py

SQLAlchemy 기반 저장소 구현.

repositories.base 의 Protocol 들을 Session 하나로 구현한다.

설계 원칙:
- commit/rollback 하지 않음 (라우터가 트랜잭션 관리)
- 삽입 충돌은 SAVEPOINT(begin_nested) 안에서 flush 하여
  유일 제약 위반(IntegrityError)을 ConflictError로 변환
- 월 회비 납부는 "paid_date IS NULL" 조건부 UPDATE(compare-and-set)로 처리

관련 파일:
- clubdues.models.club / clubdues.models.dues : ORM 모델
- clubdues.core.deps                          : 요청 단위 저장소 생성

"""

import logging
import uuid
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubdues.core.exceptions import ConflictError, NotFoundError
from clubdues.models.club import ApprovalStatus, Club, Member
from clubdues.models.dues import CustomCharge, CustomChargePayment, CustomChargeTarget, RecurringCharge
from clubdues.schemas.dues import CustomChargeRecord, FeeSettings

logger = logging.getLogger(__name__)


def fee_settings_of(club: Club) -> FeeSettings:
    return FeeSettings(
        monthly_fee_amount=club.fee_monthly_amount,
        currency=club.fee_currency,
        active_months=list(club.fee_active_months or []),
        is_active=club.fee_is_active,
        last_notification_date=club.fee_last_notification_date,
    )


class SqlClubRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_club(self, club_id: uuid.UUID) -> Optional[Club]:
        return self.db.get(Club, club_id)

    def _require_club(self, club_id: uuid.UUID) -> Club:
        club = self.get_club(club_id)
        if not club:
            raise NotFoundError("club not found", club_id=str(club_id))
        return club

    def get_fee_settings(self, club_id: uuid.UUID) -> FeeSettings:
        return fee_settings_of(self._require_club(club_id))

    def replace_fee_settings(self, club_id: uuid.UUID, fee_settings: FeeSettings) -> Club:
        club = self._require_club(club_id)

        # 통째로 교체 (merge 아님)
        club.fee_monthly_amount = fee_settings.monthly_fee_amount
        club.fee_currency = fee_settings.currency
        club.fee_active_months = list(fee_settings.active_months)
        club.fee_is_active = fee_settings.is_active
        club.fee_last_notification_date = fee_settings.last_notification_date

        self.db.flush()
        return club

    def set_last_notification_date(self, club_id: uuid.UUID, when: datetime) -> None:
        club = self._require_club(club_id)
        club.fee_last_notification_date = when
        self.db.flush()


class SqlMemberRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_member(self, user_id: uuid.UUID) -> Optional[Member]:
        return self.db.get(Member, user_id)

    def list_roster(self, club_id: uuid.UUID) -> Sequence[Member]:
        return self.db.scalars(
            select(Member)
            .where(Member.club_id == club_id)
            .where(Member.approval_status == ApprovalStatus.APPROVED)
            .where(Member.is_active.is_(True))
            .order_by(Member.name, Member.id)
        ).all()


class SqlChargeStore:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------ #
    # 월 회비
    # ------------------------------------------------------------------ #
    def existing_recurring_keys(self, club_id: uuid.UUID, year: int) -> set[tuple[uuid.UUID, int]]:
        rows = self.db.execute(
            select(RecurringCharge.user_id, RecurringCharge.month)
            .where(RecurringCharge.club_id == club_id)
            .where(RecurringCharge.year == year)
        ).all()
        return {(r.user_id, r.month) for r in rows}

    def add_recurring_charge(
        self,
        *,
        club_id: uuid.UUID,
        user_id: uuid.UUID,
        month: int,
        year: int,
        amount: Decimal,
        due_date: date,
    ) -> RecurringCharge:
        charge = RecurringCharge(
            club_id=club_id,
            user_id=user_id,
            month=month,
            year=year,
            amount=amount,
            due_date=due_date,
        )
        try:
            with self.db.begin_nested():
                self.db.add(charge)
                self.db.flush()
        except IntegrityError:
            logger.debug("recurring charge key taken: club=%s user=%s %04d-%02d", club_id, user_id, year, month)
            raise ConflictError(
                "recurring charge already exists",
                club_id=str(club_id),
                user_id=str(user_id),
                month=month,
                year=year,
            )
        return charge

    def get_recurring_charge(self, charge_id: uuid.UUID) -> Optional[RecurringCharge]:
        return self.db.get(RecurringCharge, charge_id)

    def list_recurring_charges(
        self,
        club_id: uuid.UUID,
        *,
        user_id: Optional[uuid.UUID] = None,
        year: Optional[int] = None,
    ) -> Sequence[RecurringCharge]:
        stmt = select(RecurringCharge).where(RecurringCharge.club_id == club_id)
        if user_id is not None:
            stmt = stmt.where(RecurringCharge.user_id == user_id)
        if year is not None:
            stmt = stmt.where(RecurringCharge.year == year)
        stmt = stmt.order_by(RecurringCharge.year, RecurringCharge.month, RecurringCharge.user_id)
        return self.db.scalars(stmt).all()

    # ------------------------------------------------------------------ #
    # 추가 청구
    # ------------------------------------------------------------------ #
    def add_custom_charge(
        self,
        *,
        club_id: uuid.UUID,
        description: str,
        amount: Decimal,
        due_date: date,
        applied_to_user_ids: Iterable[uuid.UUID],
        created_by: Optional[uuid.UUID] = None,
    ) -> CustomChargeRecord:
        charge = CustomCharge(
            club_id=club_id,
            description=description,
            amount=amount,
            due_date=due_date,
            created_by=created_by,
        )
        self.db.add(charge)
        self.db.flush()

        targets = set(applied_to_user_ids)
        for user_id in targets:
            self.db.add(CustomChargeTarget(charge_id=charge.id, user_id=user_id))
        self.db.flush()

        return self._to_record(charge, targets, {})

    def get_custom_charge(self, charge_id: uuid.UUID) -> Optional[CustomChargeRecord]:
        charge = self.db.get(CustomCharge, charge_id)
        if not charge:
            return None
        records = self._build_records([charge])
        return records[0]

    def list_custom_charges(self, club_id: uuid.UUID) -> list[CustomChargeRecord]:
        charges = self.db.scalars(
            select(CustomCharge)
            .where(CustomCharge.club_id == club_id)
            .order_by(CustomCharge.due_date, CustomCharge.created_at)
        ).all()
        return self._build_records(charges)

    def _build_records(self, charges: Sequence[CustomCharge]) -> list[CustomChargeRecord]:
        if not charges:
            return []
        ids = [c.id for c in charges]

        targets: dict[uuid.UUID, set[uuid.UUID]] = defaultdict(set)
        for t in self.db.scalars(select(CustomChargeTarget).where(CustomChargeTarget.charge_id.in_(ids))):
            targets[t.charge_id].add(t.user_id)

        paid: dict[uuid.UUID, dict[uuid.UUID, datetime]] = defaultdict(dict)
        for p in self.db.scalars(select(CustomChargePayment).where(CustomChargePayment.charge_id.in_(ids))):
            paid[p.charge_id][p.user_id] = p.paid_date

        return [self._to_record(c, targets[c.id], paid[c.id]) for c in charges]

    @staticmethod
    def _to_record(
        charge: CustomCharge,
        targets: set[uuid.UUID],
        paid_dates: dict[uuid.UUID, datetime],
    ) -> CustomChargeRecord:
        return CustomChargeRecord(
            id=charge.id,
            club_id=charge.club_id,
            description=charge.description,
            amount=charge.amount,
            due_date=charge.due_date,
            applied_to_user_ids=set(targets),
            paid_user_ids=set(paid_dates),
            paid_dates=dict(paid_dates),
            created_by=charge.created_by,
            created_at=charge.created_at,
        )


class SqlPaymentLedger:
    def __init__(self, db: Session):
        self.db = db

    def mark_recurring_paid(
        self,
        charge_id: uuid.UUID,
        *,
        paid_date: datetime,
        method: Optional[str] = None,
        memo: Optional[str] = None,
    ) -> RecurringCharge:
        # compare-and-set: 아직 납부되지 않은 행만 갱신
        result = self.db.execute(
            update(RecurringCharge)
            .where(RecurringCharge.id == charge_id)
            .where(RecurringCharge.paid_date.is_(None))
            .values(paid_date=paid_date, payment_method=method, memo=memo)
            .execution_options(synchronize_session=False)
        )

        charge = self.db.get(RecurringCharge, charge_id, populate_existing=True)
        if result.rowcount == 0:
            if not charge:
                raise NotFoundError("charge not found", charge_id=str(charge_id))
            raise ConflictError("charge already paid", charge_id=str(charge_id))
        return charge

    def add_custom_payment(
        self,
        charge_id: uuid.UUID,
        user_id: uuid.UUID,
        *,
        paid_date: datetime,
        method: Optional[str] = None,
        memo: Optional[str] = None,
    ) -> None:
        payment = CustomChargePayment(
            charge_id=charge_id,
            user_id=user_id,
            paid_date=paid_date,
            payment_method=method,
            memo=memo,
        )
        try:
            with self.db.begin_nested():
                self.db.add(payment)
                self.db.flush()
        except IntegrityError:
            logger.debug("custom charge %s already paid by %s", charge_id, user_id)
            raise ConflictError(
                "charge already paid by that member",
                charge_id=str(charge_id),
                user_id=str(user_id),
            )
