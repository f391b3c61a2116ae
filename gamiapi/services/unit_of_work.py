import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from gamiapi.core.exceptions import ConflictError, StorageError

logger = logging.getLogger(__name__)

# PostgreSQL serialization_failure / deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


def _is_retryable(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, IntegrityError):
        return True
    if isinstance(exc, OperationalError):
        return getattr(exc.orig, "pgcode", None) in _RETRYABLE_SQLSTATES
    return False


@contextmanager
def transactional(db: Session, conflict_message: str = "") -> Iterator[Session]:
    """하나의 작업 단위 - 성공 시 commit, 어떤 예외든 전체 rollback

    conflict_message 가 주어지면 무결성/직렬화 충돌을 재시도 가능한
    ConflictError 로, 그 외 DB 오류는 StorageError 로 변환합니다.
    도메인 예외(BaseAPIException)는 rollback 후 그대로 전파됩니다.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        if conflict_message and _is_retryable(e):
            logger.warning(f"{conflict_message}: {e.__class__.__name__}")
            raise ConflictError(conflict_message) from e
        logger.error(f"Storage failure, transaction rolled back: {str(e)}")
        raise StorageError(details={"reason": e.__class__.__name__}) from e
    except Exception:
        db.rollback()
        raise
