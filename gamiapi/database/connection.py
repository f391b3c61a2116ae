from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from gamiapi.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,  # 연결 유효성 검사
        "pool_recycle": 3600,  # 1시간마다 연결 재생성
        "connect_args": {"options": f"-csearch_path={settings.POSTGRES_SCHEMA}"},
    }


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """pysqlite 가 BEGIN 을 늦게 보내 SAVEPOINT 가 바깥 트랜잭션을 커밋해버리는 문제 회피

    SQLAlchemy 문서의 pysqlite 트랜잭션 레시피를 그대로 적용한다.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transaction(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


engine = create_engine(
    settings.database_url,
    **_engine_kwargs(settings.database_url),
)
if settings.database_url.startswith("sqlite"):
    enable_sqlite_savepoints(engine)

# Use expire_on_commit=False to avoid DetachedInstanceError when accessing
# attributes after commit within the same request scope (common FastAPI pattern).
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)
