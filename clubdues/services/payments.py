"""
services/payments.py

회비 납부 기록 로직.

- 월 회비(recurring) : paid_date 설정
- 추가 청구(custom)  : 납부 회원 집합에 user_id 추가
- 청구가 없으면 NotFoundError
- 이미 납부된 청구에 다시 기록하면 ConflictError (조용히 무시하지 않음)
- 납부는 최종 처리이며 취소(unpay) 기능은 없음

"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Union

import pydantic

from clubdues.core.exceptions import ConflictError, NotFoundError, ValidationError
from clubdues.repositories.base import ChargeStore, MemberRepository, PaymentLedger
from clubdues.schemas.dues import ChargeRef, PaymentResponse

logger = logging.getLogger(__name__)


def to_utc(value: datetime) -> datetime:
    # 저장소(SQLite)는 tz 정보를 버리므로 UTC 벽시계 시각으로 맞춰서 저장
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_charge_ref(ref: Union[ChargeRef, dict]) -> ChargeRef:
    if isinstance(ref, ChargeRef):
        parsed = ref
    else:
        try:
            parsed = ChargeRef.model_validate(ref)
        except pydantic.ValidationError:
            raise ValidationError("malformed charge reference")

    if parsed.kind == "custom" and parsed.user_id is None:
        raise ValidationError("custom charge reference requires user_id")
    return parsed


def record_payment(
    charges: ChargeStore,
    ledger: PaymentLedger,
    members: MemberRepository,
    ref: Union[ChargeRef, dict],
    *,
    paid_date: Optional[datetime] = None,
    method: Optional[str] = None,
    memo: Optional[str] = None,
    club_id: Optional[uuid.UUID] = None,
) -> PaymentResponse:
    ref = parse_charge_ref(ref)
    paid_date = to_utc(paid_date or datetime.now(timezone.utc))

    if ref.kind == "recurring":
        charge = charges.get_recurring_charge(ref.charge_id)
        if not charge or (club_id is not None and charge.club_id != club_id):
            raise NotFoundError("charge not found", charge_id=str(ref.charge_id))
        if ref.user_id is not None and ref.user_id != charge.user_id:
            raise ValidationError("charge reference user does not match the charge")

        charge = ledger.mark_recurring_paid(charge.id, paid_date=paid_date, method=method, memo=memo)
        logger.info(
            "payment recorded: recurring charge=%s user=%s %04d-%02d amount=%s",
            charge.id,
            charge.user_id,
            charge.year,
            charge.month,
            charge.amount,
        )
        return PaymentResponse(
            kind="recurring",
            charge_id=charge.id,
            user_id=charge.user_id,
            amount=charge.amount,
            paid_date=paid_date,
            method=method,
            memo=memo,
        )

    custom = charges.get_custom_charge(ref.charge_id)
    if not custom or (club_id is not None and custom.club_id != club_id):
        raise NotFoundError("charge not found", charge_id=str(ref.charge_id))

    if custom.applied_to_user_ids:
        if ref.user_id not in custom.applied_to_user_ids:
            raise NotFoundError("charge does not apply to that member", user_id=str(ref.user_id))
    else:
        member = members.get_member(ref.user_id)
        if not member or member.club_id != custom.club_id:
            raise NotFoundError("member not found in club", user_id=str(ref.user_id))

    if ref.user_id in custom.paid_user_ids:
        raise ConflictError("charge already paid by that member", charge_id=str(custom.id))

    ledger.add_custom_payment(custom.id, ref.user_id, paid_date=paid_date, method=method, memo=memo)
    logger.info("payment recorded: custom charge=%s user=%s amount=%s", custom.id, ref.user_id, custom.amount)
    return PaymentResponse(
        kind="custom",
        charge_id=custom.id,
        user_id=ref.user_id,
        amount=custom.amount,
        paid_date=paid_date,
        method=method,
        memo=memo,
    )
