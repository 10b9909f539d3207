"""

데모 클럽 초기 데이터 생성 스크립트.

- 로컬 개발 환경에서 회비 API를 바로 확인하기 위한 용도
- 데모 클럽 1개와 승인된 회원 몇 명을 생성하고,
  회비 설정(월 10.00 USD, 1~12월, 활성)을 저장한다.
- 같은 이름의 클럽이 이미 있으면 생성하지 않고 종료한다.

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ python -m scripts.seed_demo_club

"""

import os
from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import select
from clubdues.db.base import Base
from clubdues.db.session import SessionLocal, engine
from clubdues.models.club import ApprovalStatus, Club, Member
import clubdues.models.dues  # noqa: F401  (회비 테이블 등록)
from clubdues.repositories.sql import SqlClubRepository
from clubdues.services.fee_settings import save_fee_settings


DEMO_MEMBERS = ["Alice", "Bruno", "Chen"]


def main():
    Base.metadata.create_all(bind=engine)

    name = os.environ.get("DEMO_CLUB_NAME", "Demo Club")
    db = SessionLocal()
    try:
        exists = db.scalar(select(Club).where(Club.name == name))
        if exists:
            print(f"✅ club already exists: {exists.id}. Skip creation.")
            return

        club = Club(name=name)
        db.add(club)
        db.flush()

        for member_name in DEMO_MEMBERS:
            db.add(Member(club_id=club.id, name=member_name, approval_status=ApprovalStatus.APPROVED))

        save_fee_settings(
            SqlClubRepository(db),
            club_id=club.id,
            amount=os.environ.get("DEMO_FEE_AMOUNT", "10.00"),
            currency=os.environ.get("DEMO_FEE_CURRENCY", "USD"),
            active_months=range(1, 13),
            is_active=True,
        )
        db.commit()

        print(f"🚀 demo club created: {club.id}")

    finally:
        db.close()


if __name__ == "__main__":
    main()
