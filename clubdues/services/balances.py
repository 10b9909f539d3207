"""
services/balances.py

회원 회비 잔액(MemberBalance) 계산 로직.

이 파일은 저장된 청구/납부 사실과 조회 시각(as_of)만으로
회원별 납부 현황을 계산한다. 상태 값은 저장하지 않는다.

상태 규칙:
- PAID    : 납부 기록 있음
- OVERDUE : 미납 + 마감일 < 조회일
- PENDING : 미납 + 마감일 >= 조회일

잔액 = 납부 합계 - 전체 청구 합계 (= -(대기 합계 + 연체 합계))
0 이하이며, 음수면 그 크기만큼 미납 금액이 남아 있다는 뜻이다.

설계 원칙:
- 읽기 전용 순수 계산 (쓰기 없음, 캐시 없음)
- 일괄 조회는 회원마다 단건 조회 함수를 그대로 호출
- 일괄 조회 중 한 회원의 실패가 전체를 중단시키지 않음

관련 파일:
- clubdues.schemas.dues     : MemberBalance / BalanceBatchResult
- clubdues.routers.fees     : GET /balances

"""

import logging
import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from clubdues.core.exceptions import DuesError, NotFoundError
from clubdues.models.dues import RecurringCharge
from clubdues.repositories.base import ChargeStore, MemberRepository
from clubdues.schemas.dues import (
    BalanceBatchResult,
    BatchFailure,
    ChargeStatus,
    CustomChargeRecord,
    MemberBalance,
    MemberChargeLine,
)

logger = logging.getLogger(__name__)

AsOf = Union[datetime, date, None]


def resolve_as_of(as_of: AsOf = None) -> datetime:
    if as_of is None:
        return datetime.now(timezone.utc)
    if isinstance(as_of, datetime):
        if as_of.tzinfo is None:
            return as_of.replace(tzinfo=timezone.utc)
        return as_of.astimezone(timezone.utc)
    return datetime.combine(as_of, time.min, tzinfo=timezone.utc)


def derive_status(due_date: date, paid: bool, as_of: datetime) -> ChargeStatus:
    if paid:
        return ChargeStatus.PAID
    if due_date < as_of.date():
        return ChargeStatus.OVERDUE
    return ChargeStatus.PENDING


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite 는 tz 정보 없이 돌려주므로 UTC로 간주
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def charge_lines(
    user_id: uuid.UUID,
    recurring: Iterable[RecurringCharge],
    custom: Iterable[CustomChargeRecord],
    as_of: datetime,
) -> list[MemberChargeLine]:
    lines = []
    for c in recurring:
        lines.append(MemberChargeLine(
            kind="recurring",
            charge_id=c.id,
            description=f"Monthly fee {c.year:04d}-{c.month:02d}",
            amount=c.amount,
            due_date=c.due_date,
            paid_date=_as_utc(c.paid_date),
            status=derive_status(c.due_date, c.paid_date is not None, as_of),
        ))
    for c in custom:
        if not c.applies_to(user_id):
            continue
        paid = user_id in c.paid_user_ids
        lines.append(MemberChargeLine(
            kind="custom",
            charge_id=c.id,
            description=c.description,
            amount=c.amount,
            due_date=c.due_date,
            paid_date=_as_utc(c.paid_dates.get(user_id)),
            status=derive_status(c.due_date, paid, as_of),
        ))
    lines.sort(key=lambda line: (line.due_date, line.kind, str(line.charge_id)))
    return lines


def summarize(user_id: uuid.UUID, club_id: uuid.UUID, lines: Sequence[MemberChargeLine], as_of: datetime) -> MemberBalance:
    totals = {status: Decimal("0") for status in ChargeStatus}
    last_payment_date = None

    for line in lines:
        totals[line.status] += line.amount
        if line.paid_date and (last_payment_date is None or line.paid_date > last_payment_date):
            last_payment_date = line.paid_date

    total_paid = totals[ChargeStatus.PAID]
    pending = totals[ChargeStatus.PENDING]
    overdue = totals[ChargeStatus.OVERDUE]

    total_owed = total_paid + pending + overdue

    return MemberBalance(
        user_id=user_id,
        club_id=club_id,
        total_owed=total_owed,
        total_paid=total_paid,
        pending_charges=pending,
        overdue_charges=overdue,
        balance=total_paid - total_owed,
        last_payment_date=last_payment_date,
        as_of=as_of,
    )


def _require_club_member(members: MemberRepository, user_id: uuid.UUID, club_id: uuid.UUID):
    member = members.get_member(user_id)
    if not member or member.club_id != club_id:
        raise NotFoundError("member not found in club", user_id=str(user_id), club_id=str(club_id))
    return member


def list_member_charges(
    charges: ChargeStore,
    members: MemberRepository,
    *,
    user_id: uuid.UUID,
    club_id: uuid.UUID,
    as_of: AsOf = None,
) -> list[MemberChargeLine]:
    _require_club_member(members, user_id, club_id)
    as_of = resolve_as_of(as_of)
    recurring = charges.list_recurring_charges(club_id, user_id=user_id)
    custom = charges.list_custom_charges(club_id)
    return charge_lines(user_id, recurring, custom, as_of)


"""
회원 1명의 회비 잔액 조회

- 모든 연도의 월 회비 + 해당 회원에게 적용되는 추가 청구를 합산
- 회원이 없거나 다른 클럽 소속이면 NotFoundError

"""

def get_member_balance(
    charges: ChargeStore,
    members: MemberRepository,
    *,
    user_id: uuid.UUID,
    club_id: uuid.UUID,
    as_of: AsOf = None,
) -> MemberBalance:
    as_of = resolve_as_of(as_of)
    lines = list_member_charges(charges, members, user_id=user_id, club_id=club_id, as_of=as_of)
    return summarize(user_id, club_id, lines, as_of)


"""
여러 회원의 회비 잔액 일괄 조회

- 모든 회원에 같은 as_of 를 적용
- 회원별 실패는 failures 에 모으고 나머지는 계속 처리

"""

def get_all_members_balances(
    charges: ChargeStore,
    members: MemberRepository,
    *,
    club_id: uuid.UUID,
    user_ids: Iterable[uuid.UUID],
    as_of: AsOf = None,
) -> BalanceBatchResult:
    as_of = resolve_as_of(as_of)
    result = BalanceBatchResult()

    for user_id in user_ids:
        try:
            balance = get_member_balance(charges, members, user_id=user_id, club_id=club_id, as_of=as_of)
        except DuesError as e:
            logger.warning("balance failed: club=%s user=%s (%s) %s", club_id, user_id, e.kind, e.message)
            result.failures.append(BatchFailure(user_id=user_id, kind=e.kind, message=e.message))
        else:
            result.balances.append(balance)

    logger.debug(
        "balances computed: club=%s ok=%d failed=%d",
        club_id,
        len(result.balances),
        len(result.failures),
    )
    return result
