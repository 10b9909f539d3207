"""
services/fee_settings.py

클럽 회비 설정(FeeSettings) 저장 로직.

- 금액은 0 이상 숫자만 허용
- 활성(is_active) 상태인데 청구 월이 비어 있으면 거부
- 저장은 통째로 교체 (기존 설정과 병합하지 않음)
- 이미 생성된 청구는 건드리지 않음 (소급 재생성/취소 없음)

관련 파일:
- clubdues.repositories.sql : SqlClubRepository.replace_fee_settings
- clubdues.routers.fees     : PUT /clubs/{club_id}/fees/settings

"""

import logging
import uuid
from typing import Iterable

from clubdues.core.exceptions import ValidationError
from clubdues.models.club import Club
from clubdues.repositories.base import ClubRepository
from clubdues.schemas.dues import FeeSettings
from clubdues.services.validation import normalize_currency, normalize_months, parse_amount

logger = logging.getLogger(__name__)


def build_fee_settings(*, amount, currency: str, active_months: Iterable[int], is_active: bool) -> FeeSettings:
    monthly_fee_amount = parse_amount(amount)
    months = normalize_months(active_months)
    if is_active and not months:
        raise ValidationError("at least one active month is required while billing is active")

    return FeeSettings(
        monthly_fee_amount=monthly_fee_amount,
        currency=normalize_currency(currency),
        active_months=months,
        is_active=bool(is_active),
    )


def save_fee_settings(
    clubs: ClubRepository,
    *,
    club_id: uuid.UUID,
    amount,
    currency: str,
    active_months: Iterable[int],
    is_active: bool,
) -> Club:
    fee_settings = build_fee_settings(
        amount=amount,
        currency=currency,
        active_months=active_months,
        is_active=is_active,
    )
    club = clubs.replace_fee_settings(club_id, fee_settings)
    logger.info(
        "fee settings saved: club=%s amount=%s %s months=%s active=%s",
        club_id,
        fee_settings.monthly_fee_amount,
        fee_settings.currency,
        fee_settings.active_months,
        fee_settings.is_active,
    )
    return club
