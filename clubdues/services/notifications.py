"""
services/notifications.py

회비 안내 메시지 작성 및 일괄 알림 흐름.

- get_notification_message : 잔액 + 회원 이름으로 안내 문구 작성 (순수 함수, I/O 없음)
- notify_members           : 승인/활성 회원 전체에 안내 문구 전달 후
                             클럽의 마지막 알림 시각 갱신

실제 발송 채널(WhatsApp/푸시 등)은 외부 시스템이며,
NotificationChannel 인터페이스로만 연결한다.
기본 채널(LoggingNotificationChannel)은 메시지를 로그로만 남긴다.

"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Protocol

from clubdues.core.exceptions import DuesError
from clubdues.models.club import Member
from clubdues.repositories.base import ChargeStore, ClubRepository, MemberRepository
from clubdues.schemas.dues import BatchFailure, MemberBalance, NotifyResult
from clubdues.services.balances import AsOf, get_member_balance, resolve_as_of

logger = logging.getLogger(__name__)

OVERDUE_MARKER = "[OVERDUE]"


class NotificationChannel(Protocol):
    def send(self, member: Member, message: str) -> None: ...


class LoggingNotificationChannel:
    def send(self, member: Member, message: str) -> None:
        logger.info("notification to %s (%s):\n%s", member.name, member.phone or "-", message)


def format_amount(amount: Decimal, currency: Optional[str] = None) -> str:
    text = f"{Decimal(amount):.2f}"
    return f"{currency} {text}" if currency else text


def outstanding(balance: MemberBalance) -> Decimal:
    return balance.pending_charges + balance.overdue_charges


def get_notification_message(balance: MemberBalance, member_name: str, currency: Optional[str] = None) -> str:
    def money(value: Decimal) -> str:
        return format_amount(value, currency)

    lines = [
        f"Hello {member_name},",
        "Here is the current status of your club account:",
        f"Total charged: {money(balance.total_owed)}",
        f"Total paid: {money(balance.total_paid)}",
    ]

    owed = outstanding(balance)
    if owed > 0:
        lines.append(f"Amount owed: {money(owed)}")
    else:
        lines.append("You are all paid up.")

    if balance.overdue_charges > 0:
        lines.append(f"{OVERDUE_MARKER} Overdue charges: {money(balance.overdue_charges)}")
        lines.append("Please settle overdue charges as soon as possible to avoid late fees.")
    elif balance.pending_charges > 0:
        lines.append(f"Payment due: {money(balance.pending_charges)}")

    if balance.last_payment_date:
        lines.append(f"Last payment: {balance.last_payment_date.date().isoformat()}")

    lines.append("Thank you for being part of the club.")
    lines.append("This is an automated message.")
    return "\n".join(lines)


"""
승인/활성 회원 일괄 알림

- 회원마다 잔액 계산 -> 문구 작성 -> 채널 전달
- 회원별 실패는 failures 에 모으고 나머지는 계속 처리
- 한 명 이상 전달에 성공하면 클럽의 마지막 알림 시각을 갱신
- only_owing=True 면 미납(대기 + 연체) 금액이 남은 회원에게만 전달

"""

def notify_members(
    clubs: ClubRepository,
    members: MemberRepository,
    charges: ChargeStore,
    channel: NotificationChannel,
    *,
    club_id: uuid.UUID,
    as_of: AsOf = None,
    only_owing: bool = False,
) -> NotifyResult:
    fee_settings = clubs.get_fee_settings(club_id)
    as_of = resolve_as_of(as_of)
    result = NotifyResult()

    for member in members.list_roster(club_id):
        try:
            balance = get_member_balance(charges, members, user_id=member.id, club_id=club_id, as_of=as_of)
        except DuesError as e:
            result.failures.append(BatchFailure(user_id=member.id, kind=e.kind, message=e.message))
            continue

        if only_owing and outstanding(balance) == 0:
            continue

        message = get_notification_message(balance, member.name, fee_settings.currency)
        try:
            channel.send(member, message)
        except Exception as e:
            logger.exception("notification delivery failed: club=%s user=%s", club_id, member.id)
            result.failures.append(BatchFailure(user_id=member.id, kind="delivery", message=str(e)))
            continue
        result.succeeded += 1

    if result.succeeded:
        result.notified_at = datetime.now(timezone.utc)
        clubs.set_last_notification_date(club_id, result.notified_at)

    logger.info(
        "notifications sent: club=%s sent=%d failed=%d",
        club_id,
        result.succeeded,
        len(result.failures),
    )
    return result
