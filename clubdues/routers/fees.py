"""
fees.py

클럽 관리자용 회비 관리 API 모음.

이 파일은 클럽 단위 회비(dues) 기능의 요청/응답 처리만 담당한다.
인증/권한 확인은 외부(게이트웨이) 책임이며 이 서비스에서는 다루지 않는다.

주요 기능:
- 회비 설정 조회/저장
- 월 회비 일괄 생성 (멱등)
- 일회성 추가 청구 생성/조회
- 납부 기록
- 회원별/전체 잔액 조회, 청구 내역 조회
- 안내 메시지 미리보기 및 일괄 알림
- 관리자용 CSV / Excel(xlsx) 잔액 내보내기

설계 원칙:
- 비즈니스 로직은 service 계층(clubdues.services.*)에 위임
- 이 라우터는 트랜잭션(commit/rollback)과 예외 변환에만 집중
- ValidationError 400 / NotFoundError 404 / ConflictError 409

관련 파일:
- clubdues.services.*        : 회비 계산 및 검증 로직
- clubdues.repositories.sql  : DB 저장소
- clubdues.schemas.dues      : 요청/응답 스키마 정의
"""

import csv
import io
import uuid
from datetime import datetime

from starlette.responses import StreamingResponse, Response
from openpyxl import Workbook

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from clubdues.core.deps import get_charges, get_clubs, get_db, get_ledger, get_members, get_notification_channel
from clubdues.core.exceptions import DuesError, NotFoundError
from clubdues.models.club import Club
from clubdues.repositories.sql import (
    SqlChargeStore,
    SqlClubRepository,
    SqlMemberRepository,
    SqlPaymentLedger,
    fee_settings_of,
)
from clubdues.schemas.dues import (
    BalanceBatchResult,
    ClubResponse,
    CustomChargeCreateRequest,
    CustomChargeRecord,
    FeeSettingsUpdateRequest,
    GenerateFeesRequest,
    GenerateFeesResponse,
    MemberBalance,
    MemberChargeLine,
    NotificationMessageResponse,
    NotifyResult,
    PaymentCreateRequest,
    PaymentResponse,
    RecurringChargeResponse,
)
from clubdues.services.balances import get_all_members_balances, get_member_balance, list_member_charges
from clubdues.services.charges import (
    create_custom_charge,
    generate_fees_for_club,
    list_club_recurring_charges,
    list_custom_charges,
)
from clubdues.services.fee_settings import save_fee_settings
from clubdues.services.notifications import NotificationChannel, get_notification_message, notify_members
from clubdues.services.payments import record_payment

router = APIRouter(prefix="/clubs/{club_id}/fees", tags=["club-fees"])


def _club_response(club: Club) -> ClubResponse:
    return ClubResponse(id=club.id, name=club.name, fee_settings=fee_settings_of(club))


def _http_error(e: DuesError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


def _require_club(clubs: SqlClubRepository, club_id: uuid.UUID) -> Club:
    club = clubs.get_club(club_id)
    if not club:
        raise HTTPException(status_code=404, detail="club not found")
    return club


"""
회비 설정 조회 API

"""
@router.get("/settings", response_model=ClubResponse)
def read_fee_settings(
    club_id: uuid.UUID,
    clubs: SqlClubRepository = Depends(get_clubs),
):
    return _club_response(_require_club(clubs, club_id))


"""
회비 설정 저장 API

- 금액 / 통화 / 청구 월 / 활성 여부를 통째로 교체
- 이미 생성된 청구에는 영향 없음

"""
@router.put("/settings", response_model=ClubResponse)
def update_fee_settings(
    club_id: uuid.UUID,
    body: FeeSettingsUpdateRequest,
    db: Session = Depends(get_db),
    clubs: SqlClubRepository = Depends(get_clubs),
):
    try:
        club = save_fee_settings(
            clubs,
            club_id=club_id,
            amount=body.monthly_fee_amount,
            currency=body.currency,
            active_months=body.active_months,
            is_active=body.is_active,
        )
        db.commit()
        db.refresh(club)
        return _club_response(club)
    except DuesError as e:
        db.rollback()
        raise _http_error(e)
    except Exception:
        db.rollback()
        raise


"""
월 회비 일괄 생성 API

- 승인/활성 회원 x 활성 월 조합으로 청구 생성
- 이미 있는 청구는 건너뛰고, 새로 생성된 개수만 반환

"""
@router.post("/generate", response_model=GenerateFeesResponse)
def generate_fees(
    club_id: uuid.UUID,
    body: GenerateFeesRequest,
    db: Session = Depends(get_db),
    clubs: SqlClubRepository = Depends(get_clubs),
    members: SqlMemberRepository = Depends(get_members),
    charges: SqlChargeStore = Depends(get_charges),
):
    try:
        created = generate_fees_for_club(clubs, members, charges, club_id=club_id, year=body.year)
        db.commit()
        return GenerateFeesResponse(year=body.year, created=created)
    except DuesError as e:
        db.rollback()
        raise _http_error(e)
    except Exception:
        db.rollback()
        raise


"""
월 회비 청구 목록 조회 API

- year 지정 시 해당 연도만 반환
- 연/월 오름차순

"""
@router.get("/charges", response_model=list[RecurringChargeResponse])
def list_charges(
    club_id: uuid.UUID,
    year: int | None = Query(default=None, description="예: 2026"),
    clubs: SqlClubRepository = Depends(get_clubs),
    charges: SqlChargeStore = Depends(get_charges),
):
    _require_club(clubs, club_id)
    try:
        return list_club_recurring_charges(charges, club_id=club_id, year=year)
    except DuesError as e:
        raise _http_error(e)


@router.post("/custom-charges", response_model=CustomChargeRecord)
def create_custom(
    club_id: uuid.UUID,
    body: CustomChargeCreateRequest,
    db: Session = Depends(get_db),
    clubs: SqlClubRepository = Depends(get_clubs),
    members: SqlMemberRepository = Depends(get_members),
    charges: SqlChargeStore = Depends(get_charges),
):
    try:
        record = create_custom_charge(
            clubs,
            charges,
            members,
            club_id=club_id,
            description=body.description,
            amount=body.amount,
            due_date=body.due_date,
            applied_to_user_ids=body.applied_to_user_ids,
        )
        db.commit()
        return record
    except DuesError as e:
        db.rollback()
        raise _http_error(e)
    except Exception:
        db.rollback()
        raise


@router.get("/custom-charges", response_model=list[CustomChargeRecord])
def list_custom(
    club_id: uuid.UUID,
    clubs: SqlClubRepository = Depends(get_clubs),
    charges: SqlChargeStore = Depends(get_charges),
):
    _require_club(clubs, club_id)
    return list_custom_charges(charges, club_id=club_id)


"""
납부 기록 API

- kind=recurring : 월 회비 청구 id
- kind=custom    : 추가 청구 id + user_id
- 이미 납부된 청구는 409

"""
@router.post("/payments", response_model=PaymentResponse)
def create_payment(
    club_id: uuid.UUID,
    body: PaymentCreateRequest,
    db: Session = Depends(get_db),
    members: SqlMemberRepository = Depends(get_members),
    charges: SqlChargeStore = Depends(get_charges),
    ledger: SqlPaymentLedger = Depends(get_ledger),
):
    try:
        payment = record_payment(
            charges,
            ledger,
            members,
            body,
            paid_date=body.paid_date,
            method=body.method,
            memo=body.memo,
            club_id=club_id,
        )
        db.commit()
        return payment
    except DuesError as e:
        db.rollback()
        raise _http_error(e)
    except Exception:
        db.rollback()
        raise


"""
전체 회원 잔액 조회 API

- 승인/활성 회원 명부 기준
- 회원별 실패는 failures 로 함께 반환

"""
@router.get("/balances", response_model=BalanceBatchResult)
def list_balances(
    club_id: uuid.UUID,
    as_of: datetime | None = Query(default=None, description="예: 2026-02-15T00:00:00Z"),
    clubs: SqlClubRepository = Depends(get_clubs),
    members: SqlMemberRepository = Depends(get_members),
    charges: SqlChargeStore = Depends(get_charges),
):
    _require_club(clubs, club_id)
    roster = members.list_roster(club_id)
    return get_all_members_balances(
        charges,
        members,
        club_id=club_id,
        user_ids=[m.id for m in roster],
        as_of=as_of,
    )


def _roster_balance_rows(clubs, members, charges, club_id: uuid.UUID, as_of: datetime | None):
    _require_club(clubs, club_id)
    roster = members.list_roster(club_id)
    names = {m.id: m.name for m in roster}
    result = get_all_members_balances(charges, members, club_id=club_id, user_ids=list(names), as_of=as_of)
    return [
        [
            str(b.user_id),
            names[b.user_id],
            b.total_paid,
            b.pending_charges,
            b.overdue_charges,
            b.balance,
        ]
        for b in result.balances
    ]


EXPORT_HEADER = ["user_id", "name", "total_paid", "pending_charges", "overdue_charges", "balance"]
MONEY_FORMAT = "0.00"


"""
    관리자용 회원 잔액 CSV 다운로드 API

    - StreamingResponse로 한 행씩 내보냄
    - UTF-8 BOM을 추가하여 Excel에서 한글이 깨지지 않도록 처리

"""
@router.get("/balances/export")
def export_balances_csv(
    club_id: uuid.UUID,
    as_of: datetime | None = Query(default=None),
    clubs: SqlClubRepository = Depends(get_clubs),
    members: SqlMemberRepository = Depends(get_members),
    charges: SqlChargeStore = Depends(get_charges),
):
    rows = _roster_balance_rows(clubs, members, charges, club_id, as_of)

    def generate():
        # Excel에서 UTF-8 CSV 한글 깨짐 방지를 위해 BOM(Byte Order Mark) 먼저 출력
        yield "\ufeff"

        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow(EXPORT_HEADER)
        yield output.getvalue()
        output.seek(0)
        output.truncate(0)

        for r in rows:
            writer.writerow(r)
            yield output.getvalue()
            output.seek(0)
            output.truncate(0)

    filename = f"club_balances_{club_id}.csv"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(generate(), media_type="text/csv; charset=utf-8", headers=headers)


@router.get("/balances/export.xlsx")
def export_balances_xlsx(
    club_id: uuid.UUID,
    as_of: datetime | None = Query(default=None),
    clubs: SqlClubRepository = Depends(get_clubs),
    members: SqlMemberRepository = Depends(get_members),
    charges: SqlChargeStore = Depends(get_charges),
):
    rows = _roster_balance_rows(clubs, members, charges, club_id, as_of)

    wb = Workbook()
    ws = wb.active
    ws.title = "balances"

    ws.append(EXPORT_HEADER)
    for r in rows:
        ws.append(r)
        # 금액 칸은 Decimal 그대로 쓰고 소수 2자리 숫자 서식 지정
        for cell in ws[ws.max_row][2:]:
            cell.number_format = MONEY_FORMAT

    buf = io.BytesIO()
    wb.save(buf)

    filename = f"club_balances_{club_id}.xlsx"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return Response(
        content=buf.getvalue(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers=headers,
    )


@router.get("/balances/{user_id}", response_model=MemberBalance)
def read_member_balance(
    club_id: uuid.UUID,
    user_id: uuid.UUID,
    as_of: datetime | None = Query(default=None),
    members: SqlMemberRepository = Depends(get_members),
    charges: SqlChargeStore = Depends(get_charges),
):
    try:
        return get_member_balance(charges, members, user_id=user_id, club_id=club_id, as_of=as_of)
    except DuesError as e:
        raise _http_error(e)


@router.get("/balances/{user_id}/charges", response_model=list[MemberChargeLine])
def read_member_charges(
    club_id: uuid.UUID,
    user_id: uuid.UUID,
    as_of: datetime | None = Query(default=None),
    members: SqlMemberRepository = Depends(get_members),
    charges: SqlChargeStore = Depends(get_charges),
):
    try:
        return list_member_charges(charges, members, user_id=user_id, club_id=club_id, as_of=as_of)
    except DuesError as e:
        raise _http_error(e)


"""
회원 안내 메시지 미리보기 API

- 발송하지 않고 문구만 반환

"""
@router.get("/balances/{user_id}/message", response_model=NotificationMessageResponse)
def read_member_message(
    club_id: uuid.UUID,
    user_id: uuid.UUID,
    as_of: datetime | None = Query(default=None),
    clubs: SqlClubRepository = Depends(get_clubs),
    members: SqlMemberRepository = Depends(get_members),
    charges: SqlChargeStore = Depends(get_charges),
):
    try:
        fee_settings = clubs.get_fee_settings(club_id)
        balance = get_member_balance(charges, members, user_id=user_id, club_id=club_id, as_of=as_of)
        member = members.get_member(user_id)
        if not member:
            raise NotFoundError("member not found")
    except DuesError as e:
        raise _http_error(e)

    message = get_notification_message(balance, member.name, fee_settings.currency)
    return NotificationMessageResponse(user_id=user_id, message=message)


"""
회원 일괄 알림 API

- 승인/활성 회원 전체에 안내 문구 전달
- 성공 건수 / 실패 목록을 요약으로 반환
- 한 명 이상 성공 시 마지막 알림 시각 갱신

"""
@router.post("/notify", response_model=NotifyResult)
def notify_all(
    club_id: uuid.UUID,
    only_owing: bool = Query(default=False),
    db: Session = Depends(get_db),
    clubs: SqlClubRepository = Depends(get_clubs),
    members: SqlMemberRepository = Depends(get_members),
    charges: SqlChargeStore = Depends(get_charges),
    channel: NotificationChannel = Depends(get_notification_channel),
):
    try:
        result = notify_members(clubs, members, charges, channel, club_id=club_id, only_owing=only_owing)
        db.commit()
        return result
    except DuesError as e:
        db.rollback()
        raise _http_error(e)
    except Exception:
        db.rollback()
        raise
