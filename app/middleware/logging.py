import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request, tagged with a request id and the attempt id when the route carries one."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        context = {"request_id": request_id, "method": method, "path": path}

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.error(
                f"[{request_id}] {method} {path} - ERROR after {duration_ms}ms",
                extra={**context, "duration_ms": duration_ms, "error": str(exc)}
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        attempt_id = request.path_params.get("attempt_id")
        attempt_msg = f" [attempt {attempt_id}]" if attempt_id else ""

        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            log_level,
            f"[{request_id}] {method} {path} - {response.status_code} in {duration_ms}ms{attempt_msg}",
            extra={**context, "status_code": response.status_code, "duration_ms": duration_ms}
        )

        response.headers["X-Request-ID"] = request_id
        return response
