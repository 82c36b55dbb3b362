from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from app.core.config import DEFAULT_AI_CREDITS_LIMIT
from app.services.store import DataStore, eq, lt, lte

logger = logging.getLogger(__name__)

LIMIT_REACHED_MESSAGE = (
    "Limite de créditos do mês atingido. Entre em contato com o suporte para aumentar seu plano "
    "ou aguarde o próximo mês."
)

_TENANT_COLUMNS = ("id", "name", "ai_credits_limit", "ai_credits_used_this_month", "ai_credits_reset_at")


@dataclass(frozen=True)
class UsageDecision:
    allowed: bool
    used: int
    limit: int | None
    tenant_name: str | None = None

    @property
    def metered(self) -> bool:
        return self.limit is not None

    def counters(self) -> dict[str, int]:
        if not self.metered:
            return {}
        return {"credits_used_this_month": self.used, "credits_limit": self.limit}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    # SQLite devolve datetime sem fuso; gravamos sempre em UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def first_of_next_month(now: datetime) -> datetime:
    if now.month == 12:
        return datetime(now.year + 1, 1, 1, tzinfo=timezone.utc)
    return datetime(now.year, now.month + 1, 1, tzinfo=timezone.utc)


def effective_limit(raw: Any, default: int = DEFAULT_AI_CREDITS_LIMIT) -> int | None:
    if raw is None:
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


class UsageMeter:
    """Créditos mensais do assistente por tenant: 1 requisição de chat = 1 crédito.

    Reset e consumo usam updates condicionais no banco (`reset_at <= agora` e
    `used < limit`), então duas requisições simultâneas não passam do limite.
    """

    def __init__(
        self,
        store: DataStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
        default_limit: int = DEFAULT_AI_CREDITS_LIMIT,
    ) -> None:
        self._store = store
        self._clock = clock
        self._default_limit = default_limit

    def check_and_consume(self, tenant_id: str) -> UsageDecision:
        tenant = self._store.first("tenants", [eq("id", tenant_id)], columns=_TENANT_COLUMNS)
        if tenant is None:
            logger.warning("tenant not found; usage not metered", extra={"tenant_id": tenant_id})
            return UsageDecision(allowed=True, used=0, limit=None)

        name = tenant.get("name")
        limit = effective_limit(tenant.get("ai_credits_limit"), self._default_limit)
        used = int(tenant.get("ai_credits_used_this_month") or 0)
        if limit is None:
            return UsageDecision(allowed=True, used=used, limit=None, tenant_name=name)

        self._reset_if_due(tenant_id, _as_utc(tenant.get("ai_credits_reset_at")))

        consumed = self._store.increment(
            "tenants",
            [eq("id", tenant_id), lt("ai_credits_used_this_month", limit)],
            "ai_credits_used_this_month",
        )
        current = self._store.first("tenants", [eq("id", tenant_id)], columns=("ai_credits_used_this_month",))
        if current is not None:
            used = int(current.get("ai_credits_used_this_month") or 0)

        if not consumed:
            logger.info("ai credits exhausted", extra={"tenant_id": tenant_id})
            return UsageDecision(allowed=False, used=used, limit=limit, tenant_name=name)
        return UsageDecision(allowed=True, used=used, limit=limit, tenant_name=name)

    def _reset_if_due(self, tenant_id: str, reset_at: datetime | None) -> None:
        now = self._clock()
        next_reset = first_of_next_month(now)
        if reset_at is None:
            # Primeiro uso medido: só agenda o próximo reset, sem zerar o contador
            self._store.update(
                "tenants",
                [eq("id", tenant_id), eq("ai_credits_reset_at", None)],
                {"ai_credits_reset_at": next_reset},
            )
            return
        if now < reset_at:
            return
        reset = self._store.update(
            "tenants",
            [eq("id", tenant_id), lte("ai_credits_reset_at", now)],
            {"ai_credits_used_this_month": 0, "ai_credits_reset_at": next_reset},
        )
        if reset:
            logger.info("ai credits reset", extra={"tenant_id": tenant_id})
