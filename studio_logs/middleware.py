from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import time
import uuid

# the log viewer would otherwise log every read of itself
QUIET_PREFIXES = ("/admin/logs",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One started/completed (or failed) event pair per request.

    Clients may send their own ``X-Request-ID``; it is echoed back either way.
    """

    def __init__(self, app, logger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path.startswith(QUIET_PREFIXES):
            return await call_next(request)

        req_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        start = time.perf_counter()

        self.logger.info("request_started",
            req_id=req_id,
            method=request.method,
            path=path,
            client_ip=request.client.host if request.client else None,
            content_length=request.headers.get("content-length"),
        )

        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error("request_failed", req_id=req_id, path=path, error=str(e))
            raise

        fields = {
            "req_id": req_id,
            "method": request.method,
            "path": path,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
        }
        if response.status_code >= 500:
            self.logger.error("request_completed", **fields)
        elif response.status_code >= 400:
            self.logger.warning("request_completed", **fields)
        else:
            self.logger.info("request_completed", **fields)

        response.headers["X-Request-ID"] = req_id
        return response
