from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from threading import Lock

from app.core.config import AI_RATE_LIMIT_PER_MINUTE

DEFAULT_WINDOW_SECONDS = 60


@dataclass
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


class RateLimiterService(ABC):
    @abstractmethod
    def check(self, *, tenant_id: str, scope: str) -> RateLimitDecision:
        """Valida se a requisição do tenant para o escopo deve prosseguir."""


class InMemoryRateLimiterService(RateLimiterService):
    """Janela deslizante em memória por tenant+escopo.

    Protege o endpoint de chat contra rajadas; o limite mensal de créditos
    é responsabilidade do UsageMeter, não deste serviço.
    """

    def __init__(
        self,
        *,
        limit: int = AI_RATE_LIMIT_PER_MINUTE,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock=time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: dict[tuple[str, str], deque[float]] = {}
        self._lock = Lock()

    def check(self, *, tenant_id: str, scope: str) -> RateLimitDecision:
        now = self._clock()
        key = (tenant_id, scope)

        with self._lock:
            bucket = self._buckets.setdefault(key, deque())
            cutoff = now - self.window_seconds
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()

            if len(bucket) >= self.limit:
                retry_after = max(1, int(self.window_seconds - (now - bucket[0])))
                return RateLimitDecision(False, self.limit, 0, retry_after)

            bucket.append(now)
            return RateLimitDecision(True, self.limit, max(0, self.limit - len(bucket)), 0)
