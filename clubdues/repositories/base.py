"""
repositories/base.py

회비 엔진이 의존하는 저장소(Repository) 인터페이스 정의.

서비스 계층은 구체적인 DB 구현이 아니라 이 Protocol 들에만 의존한다.

- ClubRepository   : 클럽 + 회비 설정 조회/교체
- MemberRepository : 회원 조회, 승인·활성 회원 명부 조회
- ChargeStore      : 월 회비 / 추가 청구 CRUD
- PaymentLedger    : 납부 기록 (이중 납부 차단)

동시성 규약:
- 월 회비 키 (club_id, user_id, month, year) 중복 삽입 시 ConflictError
- 이미 납부된 청구에 다시 납부 기록 시 ConflictError
- 위 두 규칙은 저장소(유일 제약 / compare-and-set)가 보장하며,
  서비스는 호출을 직렬화하지 않는다.
- 저장소는 commit/rollback 하지 않는다. 트랜잭션은 호출 측(라우터)이 관리.

"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from clubdues.models.club import Club, Member
from clubdues.models.dues import RecurringCharge
from clubdues.schemas.dues import CustomChargeRecord, FeeSettings


class ClubRepository(Protocol):
    def get_club(self, club_id: uuid.UUID) -> Optional[Club]: ...

    def get_fee_settings(self, club_id: uuid.UUID) -> FeeSettings: ...

    def replace_fee_settings(self, club_id: uuid.UUID, fee_settings: FeeSettings) -> Club: ...

    def set_last_notification_date(self, club_id: uuid.UUID, when: datetime) -> None: ...


class MemberRepository(Protocol):
    def get_member(self, user_id: uuid.UUID) -> Optional[Member]: ...

    def list_roster(self, club_id: uuid.UUID) -> Sequence[Member]: ...


class ChargeStore(Protocol):
    def existing_recurring_keys(self, club_id: uuid.UUID, year: int) -> set[tuple[uuid.UUID, int]]: ...

    def add_recurring_charge(
        self,
        *,
        club_id: uuid.UUID,
        user_id: uuid.UUID,
        month: int,
        year: int,
        amount: Decimal,
        due_date: date,
    ) -> RecurringCharge: ...

    def get_recurring_charge(self, charge_id: uuid.UUID) -> Optional[RecurringCharge]: ...

    def list_recurring_charges(
        self,
        club_id: uuid.UUID,
        *,
        user_id: Optional[uuid.UUID] = None,
        year: Optional[int] = None,
    ) -> Sequence[RecurringCharge]: ...

    def add_custom_charge(
        self,
        *,
        club_id: uuid.UUID,
        description: str,
        amount: Decimal,
        due_date: date,
        applied_to_user_ids: Iterable[uuid.UUID],
        created_by: Optional[uuid.UUID] = None,
    ) -> CustomChargeRecord: ...

    def get_custom_charge(self, charge_id: uuid.UUID) -> Optional[CustomChargeRecord]: ...

    def list_custom_charges(self, club_id: uuid.UUID) -> list[CustomChargeRecord]: ...


class PaymentLedger(Protocol):
    def mark_recurring_paid(
        self,
        charge_id: uuid.UUID,
        *,
        paid_date: datetime,
        method: Optional[str] = None,
        memo: Optional[str] = None,
    ) -> RecurringCharge: ...

    def add_custom_payment(
        self,
        charge_id: uuid.UUID,
        user_id: uuid.UUID,
        *,
        paid_date: datetime,
        method: Optional[str] = None,
        memo: Optional[str] = None,
    ) -> None: ...
