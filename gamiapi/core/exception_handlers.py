import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .exceptions import BaseAPIException, InternalServerError

logger = logging.getLogger("gamiapi")


def _describe(request: Request) -> str:
    client = request.client.host if request.client else "-"
    return f"{request.method} {request.url} from {client}"


def _envelope(code: str, message: str, details: Optional[Dict[str, Any]] = None):
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }


async def handle_base_api_exception(request: Request, exc: BaseAPIException):
    # 4xx 는 정상적인 업무 거절 (잔액 부족, 재고 소진 등)
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"[{type(exc).__name__}] {_describe(request)} -> "
        f"{exc.status_code} {exc.error_code}: {exc.message}"
    )
    return JSONResponse(status_code=exc.status_code, content=exc.detail)  # type: ignore[arg-type]


async def handle_http_exception(request: Request, exc: HTTPException):
    line = f"[HTTPException] {_describe(request)} -> {exc.status_code}: {exc.detail}"
    if exc.status_code >= 500:
        tb_str = "".join(traceback.format_tb(exc.__traceback__))
        logger.error(f"{line}\n\nStack Trace:\n{tb_str}")
    else:
        logger.warning(line)

    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope("HTTP_ERROR", str(exc.detail)),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    logger.warning(
        f"[RequestValidationError] {_describe(request)} -> 422: {exc.errors()}"
    )
    content = _envelope("VALIDATION_001", "Validation failed", {"errors": exc.errors()})
    return JSONResponse(status_code=422, content=jsonable_encoder(content))


async def handle_unexpected_error(request: Request, exc: Exception):
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"[Unhandled Error] {_describe(request)}\n"
        f"{type(exc).__name__}: {str(exc)}\n\n"
        f"Full Stack Trace:\n{tb_str}"
    )

    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)  # type: ignore[arg-type]


def register_exception_handlers(app: FastAPI) -> None:
    # BaseAPIException은 HTTPException 하위 클래스이므로 먼저 등록
    app.add_exception_handler(BaseAPIException, handle_base_api_exception)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected_error)
