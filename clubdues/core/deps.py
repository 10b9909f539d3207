from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from clubdues.db.session import SessionLocal
from clubdues.repositories.sql import SqlChargeStore, SqlClubRepository, SqlMemberRepository, SqlPaymentLedger
from clubdues.services.notifications import LoggingNotificationChannel, NotificationChannel


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# 요청 단위 저장소 (같은 요청 안에서는 get_db 세션을 공유)
def get_clubs(db: Session = Depends(get_db)) -> SqlClubRepository:
    return SqlClubRepository(db)


def get_members(db: Session = Depends(get_db)) -> SqlMemberRepository:
    return SqlMemberRepository(db)


def get_charges(db: Session = Depends(get_db)) -> SqlChargeStore:
    return SqlChargeStore(db)


def get_ledger(db: Session = Depends(get_db)) -> SqlPaymentLedger:
    return SqlPaymentLedger(db)


def get_notification_channel() -> NotificationChannel:
    return LoggingNotificationChannel()
