"""

회원 잔액 계산 테스트.
- 납부/대기/연체 금액 합산과 잔액 부호,
  조회 시각(as_of)에 따른 대기 -> 연체 전환,
  추가 청구 반영, 일괄 조회 시 회원별 실패 수집을 확인한다.

"""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from clubdues.core.exceptions import NotFoundError
from clubdues.schemas.dues import ChargeStatus
from clubdues.services.balances import (
    derive_status,
    get_all_members_balances,
    get_member_balance,
    list_member_charges,
    resolve_as_of,
)
from clubdues.services.charges import create_custom_charge, generate_fees_for_club
from clubdues.services.payments import record_payment
from tests.helpers import create_club_in_db, create_member_in_db, repos


JAN_15 = datetime(2024, 1, 15, tzinfo=timezone.utc)
MAR_05 = datetime(2024, 3, 5, tzinfo=timezone.utc)


@pytest.fixture()
def club_2024(db):
    """2명 x 1~3월 (월 10) 청구가 생성된 클럽"""
    club = create_club_in_db(db, amount="10", active_months=(1, 2, 3))
    a = create_member_in_db(db, club, name="A")
    b = create_member_in_db(db, club, name="B")
    r = repos(db)
    generate_fees_for_club(r["clubs"], r["members"], r["charges"], club_id=club.id, year=2024)
    db.commit()
    return {"club": club, "a": a, "b": b, **r}


def _balance(ctx, member, as_of):
    return get_member_balance(ctx["charges"], ctx["members"], user_id=member.id, club_id=ctx["club"].id, as_of=as_of)


def _pay_month(ctx, member, month, paid_date):
    charge = next(
        c for c in ctx["charges"].list_recurring_charges(ctx["club"].id, user_id=member.id) if c.month == month
    )
    record_payment(
        ctx["charges"],
        ctx["ledger"],
        ctx["members"],
        {"kind": "recurring", "charge_id": charge.id},
        paid_date=paid_date,
    )


def test_unpaid_charges_before_due_are_pending(club_2024):
    balance = _balance(club_2024, club_2024["a"], JAN_15)

    assert balance.total_paid == Decimal("0")
    assert balance.pending_charges == Decimal("30")
    assert balance.overdue_charges == Decimal("0")
    assert balance.balance == Decimal("-30")
    assert balance.total_owed == Decimal("30")
    assert balance.last_payment_date is None


def test_payment_before_due_date(club_2024, db):
    _pay_month(club_2024, club_2024["a"], 1, JAN_15)
    db.commit()

    balance = _balance(club_2024, club_2024["a"], JAN_15)
    assert balance.total_paid == Decimal("10")
    assert balance.pending_charges == Decimal("20")
    assert balance.overdue_charges == Decimal("0")
    assert balance.balance == Decimal("-20")
    assert balance.last_payment_date == JAN_15


def test_unpaid_charge_past_due_becomes_overdue(club_2024, db):
    _pay_month(club_2024, club_2024["a"], 1, JAN_15)
    db.commit()

    balance = _balance(club_2024, club_2024["a"], MAR_05)
    assert balance.total_paid == Decimal("10")
    assert balance.pending_charges == Decimal("10")
    assert balance.overdue_charges == Decimal("10")
    assert balance.balance == Decimal("-20")


def test_paid_charge_stays_paid_after_due_date(club_2024, db):
    _pay_month(club_2024, club_2024["a"], 1, JAN_15)
    db.commit()

    lines = list_member_charges(
        club_2024["charges"],
        club_2024["members"],
        user_id=club_2024["a"].id,
        club_id=club_2024["club"].id,
        as_of=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )
    assert [line.status for line in lines] == [ChargeStatus.PAID, ChargeStatus.OVERDUE, ChargeStatus.OVERDUE]


def test_charge_due_today_is_still_pending():
    due = date(2024, 1, 31)
    assert derive_status(due, False, datetime(2024, 1, 31, 23, 59, tzinfo=timezone.utc)) == ChargeStatus.PENDING
    assert derive_status(due, False, datetime(2024, 2, 1, tzinfo=timezone.utc)) == ChargeStatus.OVERDUE
    assert derive_status(due, True, datetime(2024, 2, 1, tzinfo=timezone.utc)) == ChargeStatus.PAID


def test_resolve_as_of_normalizes_to_utc():
    assert resolve_as_of(date(2024, 3, 5)) == MAR_05
    assert resolve_as_of(datetime(2024, 3, 5)) == MAR_05
    assert resolve_as_of(None).tzinfo is not None


def test_whole_club_custom_charge_hits_every_member(club_2024, db):
    create_custom_charge(
        club_2024["clubs"],
        club_2024["charges"],
        club_2024["members"],
        club_id=club_2024["club"].id,
        description="Tournament",
        amount="25",
        due_date=date(2024, 2, 10),
    )
    db.commit()

    for member in (club_2024["a"], club_2024["b"]):
        before_due = _balance(club_2024, member, JAN_15)
        assert before_due.pending_charges == Decimal("55")
        assert before_due.overdue_charges == Decimal("0")

        after_due = _balance(club_2024, member, MAR_05)
        # 1~2월 회비(20) + 추가 청구(25) 연체, 3월 회비(10) 대기
        assert after_due.overdue_charges == Decimal("45")
        assert after_due.pending_charges == Decimal("10")


def test_targeted_custom_charge_only_hits_targets(club_2024, db):
    create_custom_charge(
        club_2024["clubs"],
        club_2024["charges"],
        club_2024["members"],
        club_id=club_2024["club"].id,
        description="Jersey",
        amount="30",
        due_date=date(2024, 2, 10),
        applied_to_user_ids=[club_2024["a"].id],
    )
    db.commit()

    assert _balance(club_2024, club_2024["a"], JAN_15).pending_charges == Decimal("60")
    assert _balance(club_2024, club_2024["b"], JAN_15).pending_charges == Decimal("30")


def test_paid_custom_charge_counts_as_paid(club_2024, db):
    custom = create_custom_charge(
        club_2024["clubs"],
        club_2024["charges"],
        club_2024["members"],
        club_id=club_2024["club"].id,
        description="Trip",
        amount="25",
        due_date=date(2024, 2, 10),
    )
    paid_at = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)
    record_payment(
        club_2024["charges"],
        club_2024["ledger"],
        club_2024["members"],
        {"kind": "custom", "charge_id": custom.id, "user_id": club_2024["b"].id},
        paid_date=paid_at,
    )
    db.commit()

    balance = _balance(club_2024, club_2024["b"], MAR_05)
    assert balance.total_paid == Decimal("25")
    assert balance.last_payment_date == paid_at
    # 추가 청구는 납부, 1~2월 회비 연체 + 3월 회비 대기 (30) 는 미납
    assert balance.total_owed == Decimal("55")
    assert balance.balance == Decimal("-30")


def test_member_without_charges_has_zero_balance(db):
    club = create_club_in_db(db)
    member = create_member_in_db(db, club)
    r = repos(db)

    balance = get_member_balance(r["charges"], r["members"], user_id=member.id, club_id=club.id, as_of=JAN_15)
    assert balance.balance == Decimal("0")
    assert balance.total_owed == Decimal("0")


def test_member_of_other_club_not_found(club_2024, db):
    other = create_club_in_db(db, name="Other")

    with pytest.raises(NotFoundError):
        get_member_balance(
            club_2024["charges"],
            club_2024["members"],
            user_id=club_2024["a"].id,
            club_id=other.id,
            as_of=JAN_15,
        )


def test_batch_collects_failures_and_keeps_going(club_2024):
    missing = uuid.uuid4()

    result = get_all_members_balances(
        club_2024["charges"],
        club_2024["members"],
        club_id=club_2024["club"].id,
        user_ids=[club_2024["a"].id, missing, club_2024["b"].id],
        as_of=MAR_05,
    )

    assert result.succeeded == 2
    assert [b.user_id for b in result.balances] == [club_2024["a"].id, club_2024["b"].id]
    assert len(result.failures) == 1
    assert result.failures[0].user_id == missing
    assert result.failures[0].kind == "not_found"
    # 모든 회원에 같은 as_of 적용
    assert {b.as_of for b in result.balances} == {MAR_05}


def test_batch_matches_single_member_results(club_2024, db):
    a, b = club_2024["a"], club_2024["b"]
    _pay_month(club_2024, a, 1, JAN_15)
    custom = create_custom_charge(
        club_2024["clubs"],
        club_2024["charges"],
        club_2024["members"],
        club_id=club_2024["club"].id,
        description="Tournament",
        amount="25",
        due_date=date(2024, 2, 10),
    )
    create_custom_charge(
        club_2024["clubs"],
        club_2024["charges"],
        club_2024["members"],
        club_id=club_2024["club"].id,
        description="Jersey",
        amount="30",
        due_date=date(2024, 3, 20),
        applied_to_user_ids=[b.id],
    )
    record_payment(
        club_2024["charges"],
        club_2024["ledger"],
        club_2024["members"],
        {"kind": "custom", "charge_id": custom.id, "user_id": b.id},
        paid_date=datetime(2024, 2, 5, tzinfo=timezone.utc),
    )
    db.commit()

    result = get_all_members_balances(
        club_2024["charges"],
        club_2024["members"],
        club_id=club_2024["club"].id,
        user_ids=[a.id, b.id],
        as_of=MAR_05,
    )

    assert result.failures == []
    for member, batched in zip((a, b), result.balances):
        single = _balance(club_2024, member, MAR_05)
        assert batched.model_dump() == single.model_dump()


def test_balance_is_paid_minus_everything_charged(club_2024, db):
    _pay_month(club_2024, club_2024["a"], 1, JAN_15)
    _pay_month(club_2024, club_2024["a"], 2, JAN_15)
    db.commit()

    for as_of in (JAN_15, MAR_05, datetime(2030, 1, 1, tzinfo=timezone.utc)):
        balance = _balance(club_2024, club_2024["a"], as_of)
        assert balance.balance == balance.total_paid - balance.total_owed
        assert balance.balance == -(balance.pending_charges + balance.overdue_charges)

    # 전부 납부하면 잔액 0
    _pay_month(club_2024, club_2024["a"], 3, JAN_15)
    db.commit()
    assert _balance(club_2024, club_2024["a"], MAR_05).balance == Decimal("0")
