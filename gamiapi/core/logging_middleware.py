import logging
import time

from fastapi import HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger("gamiapi")


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로깅 - 4xx 는 warning, 5xx 는 error"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        client = request.client.host if request.client else "-"
        label = f"{request.method} {request.url.path} from {client}"

        logger.info(f"[Request] {label}")
        try:
            response = await call_next(request)
        except HTTPException as http_exc:
            log = logger.error if http_exc.status_code >= 500 else logger.warning
            log(f"[HTTPException] {label} -> {http_exc.status_code}: {http_exc.detail}")
            raise
        except Exception:
            logger.exception(f"[Unhandled Error] {label}")
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"

        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(f"[Response] {label} -> {response.status_code} in {elapsed_ms:.1f}ms")
        return response
