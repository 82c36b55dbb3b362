from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.ai.schema import ChatRequest
from app.ai.service import ChatOrchestrator
from app.core.rate_limiter import RateLimiterService
from app.core.request_context import set_request_context
from app.deps import (
    TenantPrincipal,
    get_optional_principal,
    get_orchestrator,
    get_rate_limiter,
    get_usage_meter,
)
from app.services.store import StoreError
from app.services.usage_meter import LIMIT_REACHED_MESSAGE, UsageMeter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])

STORE_UNAVAILABLE_MESSAGE = "Serviço temporariamente indisponível. Por favor, tente novamente em instantes."
RATE_LIMITED_MESSAGE = "Muitas mensagens em pouco tempo. Aguarde um instante e tente novamente."


def _unauthorized() -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"error": "unauthorized", "detail": "tenant_required"},
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post("/chat")
def chat(
    payload: ChatRequest,
    principal: TenantPrincipal | None = Depends(get_optional_principal),
    meter: UsageMeter = Depends(get_usage_meter),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
    rate_limiter: RateLimiterService = Depends(get_rate_limiter),
):
    if principal is None:
        return _unauthorized()
    set_request_context(tenant_id=principal.tenant_id, user_id=principal.user_id)

    messages = payload.conversation()
    if not messages:
        return JSONResponse(status_code=400, content={"error": "messages or message required"})

    decision = rate_limiter.check(tenant_id=principal.tenant_id, scope="ai_chat")
    if not decision.allowed:
        return JSONResponse(
            status_code=429,
            content={"error": RATE_LIMITED_MESSAGE},
            headers={
                "Retry-After": str(decision.retry_after_seconds),
                "X-RateLimit-Limit": str(decision.limit),
                "X-RateLimit-Remaining": str(decision.remaining),
            },
        )

    try:
        usage = meter.check_and_consume(principal.tenant_id)
    except StoreError:
        logger.exception("usage meter failed")
        return JSONResponse(status_code=503, content={"error": STORE_UNAVAILABLE_MESSAGE})

    if not usage.allowed:
        return {"error": LIMIT_REACHED_MESSAGE, **usage.counters()}

    result = orchestrator.run(messages, principal.tenant_id, usage.tenant_name)
    return {**result.to_payload(), **usage.counters()}
