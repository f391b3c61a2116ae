from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from gamiapi.database.connection import SessionLocal


def get_db() -> Iterator[Session]:
    """요청 단위 세션 - commit/rollback 은 서비스의 작업 단위가 담당"""
    db = SessionLocal()
    try:
        yield db
    finally:
        # 커밋되지 않은 읽기 트랜잭션은 close 시 롤백됨
        db.close()


@contextmanager
def get_db_context() -> Iterator[Session]:
    """스크립트/배치용 - 블록이 끝나면 commit, 예외 시 rollback"""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
