"""
services/charges.py

회비 '청구' 생성 로직 모음.

이 파일은 월 회비 일괄 생성(ChargeGenerator)과
일회성 추가 청구(CustomCharge) 생성/조회를 담당한다.

설계 원칙:
- 월 회비 생성은 멱등(idempotent): 같은 (club, user, month, year) 키는 한 번만 생성
- 이미 존재하는 청구는 금액/마감일을 갱신하지 않고, 생성 개수에도 포함하지 않음
- 동시 실행 시 중복은 저장소의 유일 제약이 막고, 여기서는 ConflictError를 건너뜀
- 마감일 규칙: 청구 월의 마지막 날 (한 번 정하면 바꾸지 않음)

관련 파일:
- clubdues.repositories.sql : SqlChargeStore
- clubdues.routers.fees     : POST /generate, /custom-charges

"""

import calendar
import logging
import uuid
from datetime import date
from typing import Iterable, Optional, Sequence

from clubdues.core.exceptions import ConflictError, NotFoundError, ValidationError
from clubdues.models.dues import RecurringCharge
from clubdues.repositories.base import ChargeStore, ClubRepository, MemberRepository
from clubdues.schemas.dues import CustomChargeRecord, FeeSettings
from clubdues.services.validation import normalize_months, parse_amount, parse_due_date, validate_year

logger = logging.getLogger(__name__)


def due_date_for(month: int, year: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, last_day)


def _member_id(member) -> uuid.UUID:
    return member if isinstance(member, uuid.UUID) else member.id


"""
월 회비 일괄 생성

- fee_settings.is_active 가 False면 아무것도 하지 않고 0 반환
- members 는 호출 측에서 승인/활성 회원으로 걸러서 전달
- 새로 삽입된 청구 개수만 반환

"""

def generate_monthly_fees(
    charges: ChargeStore,
    *,
    club_id: uuid.UUID,
    members: Iterable,
    fee_settings: FeeSettings,
    year: int,
) -> int:
    if not fee_settings.is_active:
        logger.info("fee generation skipped (billing inactive): club=%s year=%s", club_id, year)
        return 0

    validate_year(year)
    months = normalize_months(fee_settings.active_months)
    if not months:
        raise ValidationError("at least one active month is required while billing is active")
    amount = parse_amount(fee_settings.monthly_fee_amount)

    existing = charges.existing_recurring_keys(club_id, year)
    created = 0
    skipped = 0

    for member in members:
        user_id = _member_id(member)
        for month in months:
            if (user_id, month) in existing:
                skipped += 1
                continue
            try:
                charges.add_recurring_charge(
                    club_id=club_id,
                    user_id=user_id,
                    month=month,
                    year=year,
                    amount=amount,
                    due_date=due_date_for(month, year),
                )
            except ConflictError:
                # 다른 요청이 먼저 생성한 경우
                skipped += 1
            else:
                created += 1
            existing.add((user_id, month))

    logger.info(
        "monthly fees generated: club=%s year=%s created=%d skipped=%d",
        club_id,
        year,
        created,
        skipped,
    )
    return created


def generate_fees_for_club(
    clubs: ClubRepository,
    members: MemberRepository,
    charges: ChargeStore,
    *,
    club_id: uuid.UUID,
    year: int,
) -> int:
    fee_settings = clubs.get_fee_settings(club_id)
    roster = members.list_roster(club_id)
    return generate_monthly_fees(
        charges,
        club_id=club_id,
        members=roster,
        fee_settings=fee_settings,
        year=year,
    )


def list_club_recurring_charges(
    charges: ChargeStore,
    *,
    club_id: uuid.UUID,
    year: Optional[int] = None,
) -> Sequence[RecurringCharge]:
    if year is not None:
        validate_year(year)
    return charges.list_recurring_charges(club_id, year=year)


"""
일회성 추가 청구 생성

- 클럽이 없으면 NotFoundError
- 금액은 0보다 커야 함
- 설명(description)은 공백 불가
- applied_to_user_ids 가 비어 있으면 클럽 전체 회원 대상
- 지정된 회원은 모두 해당 클럽 소속이어야 함

"""

def create_custom_charge(
    clubs: ClubRepository,
    charges: ChargeStore,
    members: MemberRepository,
    *,
    club_id: uuid.UUID,
    description: str,
    amount,
    due_date,
    applied_to_user_ids: Iterable[uuid.UUID] = (),
    created_by: Optional[uuid.UUID] = None,
) -> CustomChargeRecord:
    if not clubs.get_club(club_id):
        raise NotFoundError("club not found", club_id=str(club_id))

    amount = parse_amount(amount, allow_zero=False)
    description = (description or "").strip()
    if not description:
        raise ValidationError("description is required")
    due = parse_due_date(due_date)

    targets = set(applied_to_user_ids)
    for user_id in targets:
        member = members.get_member(user_id)
        if not member or member.club_id != club_id:
            raise NotFoundError("member not found in club", user_id=str(user_id), club_id=str(club_id))

    record = charges.add_custom_charge(
        club_id=club_id,
        description=description,
        amount=amount,
        due_date=due,
        applied_to_user_ids=targets,
        created_by=created_by,
    )
    logger.info(
        "custom charge created: club=%s charge=%s amount=%s targets=%s",
        club_id,
        record.id,
        amount,
        len(targets) or "all",
    )
    return record


def list_custom_charges(charges: ChargeStore, *, club_id: uuid.UUID) -> list[CustomChargeRecord]:
    return charges.list_custom_charges(club_id)
