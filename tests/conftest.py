import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clubdues.main import app as fastapi_app
from clubdues.core.config import settings
from clubdues.core.deps import get_db
from clubdues.db.base import Base
from clubdues.db.session import configure_sqlite_savepoints, engine_kwargs

# ✅ 모델 import (Base.metadata에 테이블 등록)
import clubdues.models.club  # noqa: F401
import clubdues.models.dues  # noqa: F401


# 지정이 없으면 메모리 SQLite 사용
TEST_DB_URL = settings.TEST_DATABASE_URL or os.getenv("TEST_DATABASE_URL") or "sqlite://"

if TEST_DB_URL == "sqlite://":
    # 메모리 DB는 커넥션마다 따로 생기므로 하나의 커넥션을 공유
    engine = create_engine(TEST_DB_URL, poolclass=StaticPool, connect_args={"check_same_thread": False})
else:
    engine = create_engine(TEST_DB_URL, **engine_kwargs(TEST_DB_URL))
configure_sqlite_savepoints(engine)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """테스트 전체 시작/종료 때만 스키마 생성/삭제"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    """각 테스트마다 데이터 초기화 (테이블은 유지, row만 삭제)"""
    # FK 의존 순서의 역순으로 삭제
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db():
    """테스트에서 직접 DB 조작할 때 쓰는 세션"""
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def client(db):
    # API 요청도 테스트 세션을 그대로 사용 (요청 사이 데이터 확인이 쉬움)
    def override_get_db():
        yield db

    fastapi_app.dependency_overrides[get_db] = override_get_db
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()
