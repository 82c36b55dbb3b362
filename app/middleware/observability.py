from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.core.metrics import request_metrics
from app.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Request id, métricas por endpoint e um log JSON por requisição.

    tenant/user só são conhecidos depois da autenticação da rota, que os
    grava em `request.state`.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_context(request_id=request_id)

        response: Response | None = None
        endpoint = request.url.path
        method = request.method

        try:
            response = await call_next(request)
            return response
        finally:
            status_code = response.status_code if response is not None else 500
            tenant_id = _extract_tenant_id(request)
            user_id = _extract_user_id(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 2)

            request_metrics.observe(endpoint=endpoint, method=method, status_code=status_code, duration_ms=duration_ms)
            logger.info(
                "request completed",
                extra={
                    "request_id": request_id,
                    "tenant_id": tenant_id,
                    "user_id": user_id,
                    "endpoint": endpoint,
                    "method": method,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                },
            )

            if response is not None:
                response.headers[REQUEST_ID_HEADER] = request_id

            clear_request_context()


def _extract_tenant_id(request: Request) -> str | None:
    tenant_id = getattr(request.state, "tenant_id", None)
    return str(tenant_id) if tenant_id else None


def _extract_user_id(request: Request) -> str | None:
    user_id = getattr(request.state, "user_id", None)
    return str(user_id) if user_id else None
