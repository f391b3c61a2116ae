"""
도메인 예외 계층

모든 예외는 HTTPException 이므로 라우터에서 그대로 전파되면
exception_handlers 가 아래 형태의 JSON 으로 응답합니다.
  {"success": false, "error": {"code": ..., "message": ..., "details": {...}}}
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """Base exception for API errors"""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": error_code,
                    "message": message,
                    "details": self.details,
                },
            },
        )

    def __str__(self) -> str:
        return self.message


class _DomainError(BaseAPIException):
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_001"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            status_code=self.http_status,
            error_code=self.code,
            message=message or self.default_message,
            details=details,
        )


class ValidationError(_DomainError):
    """입력 검증 실패 - 변경 전에 거부되며 아무것도 저장되지 않음"""

    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_001"
    default_message = "Validation failed"


class NotFoundError(_DomainError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND_001"
    default_message = "Resource not found"


class InsufficientBalanceError(_DomainError):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "BALANCE_001"
    default_message = "Insufficient balance"


class OutOfStockError(_DomainError):
    http_status = status.HTTP_409_CONFLICT
    code = "STOCK_001"
    default_message = "Reward out of stock"


class StorageError(_DomainError):
    """저장소 실패 - 작업 단위 전체가 롤백됨"""

    code = "STORAGE_001"
    default_message = "Storage failure"


class InternalServerError(_DomainError):
    pass


class ConflictError(_DomainError):
    """동시 쓰기 경합 - retryable 이면 클라이언트가 그대로 재시도 가능"""

    http_status = status.HTTP_409_CONFLICT
    code = "CONFLICT_001"
    default_message = "Resource conflict"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict] = None,
        retryable: bool = True,
    ):
        self.retryable = retryable
        merged = {"retryable": retryable}
        merged.update(details or {})
        super().__init__(message, merged)
