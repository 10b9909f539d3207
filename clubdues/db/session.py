"""
session.py

데이터베이스 엔진 및 세션(Session) 관리 파일.

이 파일은 SQLAlchemy Engine과 SessionLocal을 생성하여
애플리케이션 전반에서 공통으로 사용하는 DB 연결을 관리한다.

FastAPI 의존성(get_db)을 통해
요청 단위로 세션을 생성/종료하는 구조를 지원한다.

설계 원칙:
- DB 연결 설정은 한 곳에서만 정의
- 세션 생성/종료 책임을 명확히 분리
- pool_pre_ping=True로 유휴 연결 오류 방지

관련 파일:
- clubdues.core.config     : DATABASE_URL 설정
- clubdues.core.deps       : get_db 의존성

"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from clubdues.core.config import settings


def engine_kwargs(url: str) -> dict:
    # SQLite는 TestClient / 스레드풀에서 같은 커넥션을 공유하므로 스레드 검사 해제
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


# SQLAlchemy Engine 생성
engine = create_engine(settings.DATABASE_URL, **engine_kwargs(settings.DATABASE_URL))

# 요청 단위로 사용할 세션 팩토리
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


"""
SQLite SAVEPOINT 보정

pysqlite 드라이버는 BEGIN 시점을 스스로 미루기 때문에
begin_nested()(SAVEPOINT)가 올바르게 동작하지 않는다.
드라이버의 트랜잭션 처리를 끄고 BEGIN을 직접 발행하도록 한다.
(중복 청구 / 이중 납부 충돌 감지에 SAVEPOINT를 사용)

"""

def configure_sqlite_savepoints(target_engine) -> None:
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(target_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


configure_sqlite_savepoints(engine)
