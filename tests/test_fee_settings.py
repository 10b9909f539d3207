"""

회비 설정 저장 테스트.
- 통째로 교체(병합 없음), 활성 상태인데 청구 월이 비어 있으면 거부,
  이미 생성된 청구는 설정 변경 후에도 그대로인지 확인한다.

"""
import uuid
from decimal import Decimal

import pytest

from clubdues.core.exceptions import NotFoundError, ValidationError
from clubdues.services.charges import generate_fees_for_club
from clubdues.services.fee_settings import build_fee_settings, save_fee_settings
from tests.helpers import create_club_in_db, create_member_in_db, repos


def test_save_fee_settings_replaces_whole_object(db):
    club = create_club_in_db(db, amount="10.00", active_months=(1, 2, 3))
    r = repos(db)

    save_fee_settings(
        r["clubs"],
        club_id=club.id,
        amount="12.50",
        currency="eur",
        active_months=[9, 10],
        is_active=True,
    )
    db.commit()

    fee_settings = r["clubs"].get_fee_settings(club.id)
    assert fee_settings.monthly_fee_amount == Decimal("12.50")
    assert fee_settings.currency == "EUR"
    assert fee_settings.active_months == [9, 10]
    assert fee_settings.is_active is True


def test_active_settings_require_months():
    with pytest.raises(ValidationError) as e:
        build_fee_settings(amount="10", currency="USD", active_months=[], is_active=True)
    assert e.value.message == "at least one active month is required while billing is active"


def test_inactive_settings_may_have_no_months():
    fee_settings = build_fee_settings(amount="0", currency="USD", active_months=[], is_active=False)
    assert fee_settings.active_months == []
    assert fee_settings.is_active is False


def test_negative_amount_rejected(db):
    club = create_club_in_db(db)
    with pytest.raises(ValidationError):
        save_fee_settings(
            repos(db)["clubs"],
            club_id=club.id,
            amount="-5",
            currency="USD",
            active_months=[1],
            is_active=True,
        )


def test_unknown_club_not_found(db):
    with pytest.raises(NotFoundError):
        save_fee_settings(
            repos(db)["clubs"],
            club_id=uuid.uuid4(),
            amount="10",
            currency="USD",
            active_months=[1],
            is_active=True,
        )


def test_settings_change_does_not_touch_existing_charges(db):
    club = create_club_in_db(db, amount="10.00", active_months=(1,))
    create_member_in_db(db, club)
    r = repos(db)

    assert generate_fees_for_club(r["clubs"], r["members"], r["charges"], club_id=club.id, year=2024) == 1
    db.commit()

    save_fee_settings(r["clubs"], club_id=club.id, amount="20.00", currency="USD", active_months=[1], is_active=True)
    db.commit()

    # 같은 키는 다시 생성되지 않고 금액도 그대로
    assert generate_fees_for_club(r["clubs"], r["members"], r["charges"], club_id=club.id, year=2024) == 0
    charges = r["charges"].list_recurring_charges(club.id)
    assert [c.amount for c in charges] == [Decimal("10.00")]


def test_fee_amount_with_three_decimals_rejected(db):
    club = create_club_in_db(db, amount="10.00")
    r = repos(db)

    with pytest.raises(ValidationError) as e:
        save_fee_settings(r["clubs"], club_id=club.id, amount="10.005", currency="USD", active_months=[1], is_active=True)
    assert e.value.message == "amount must have at most 2 decimal places"
    db.rollback()
    assert r["clubs"].get_fee_settings(club.id).monthly_fee_amount == Decimal("10.00")
