from __future__ import annotations

from dataclasses import dataclass
from threading import Lock


@dataclass
class EndpointMetric:
    total_requests: int = 0
    total_duration_ms: float = 0.0
    error_count: int = 0


@dataclass
class ToolMetric:
    calls: int = 0
    errors: int = 0


class InMemoryRequestMetrics:
    def __init__(self) -> None:
        self._metrics: dict[tuple[str, str], EndpointMetric] = {}
        self._lock = Lock()

    def observe(self, endpoint: str, method: str, status_code: int, duration_ms: float) -> None:
        key = (endpoint, method)
        with self._lock:
            metric = self._metrics.setdefault(key, EndpointMetric())
            metric.total_requests += 1
            metric.total_duration_ms += duration_ms
            if status_code >= 400:
                metric.error_count += 1

    def snapshot(self) -> dict[str, dict[str, float | int]]:
        with self._lock:
            result: dict[str, dict[str, float | int]] = {}
            for (endpoint, method), metric in self._metrics.items():
                avg = metric.total_duration_ms / metric.total_requests if metric.total_requests else 0.0
                result[f"{method} {endpoint}"] = {
                    "total_requests": metric.total_requests,
                    "total_duration_ms": round(metric.total_duration_ms, 2),
                    "avg_duration_ms": round(avg, 2),
                    "error_count": metric.error_count,
                }
            return result


# Nomes de ferramenta inventados pelo modelo caem todos no mesmo contador
UNKNOWN_TOOL_METRIC = "<unknown>"


class InMemoryAssistantMetrics:
    """Contadores do assistente: rodadas de completion e chamadas de ferramenta."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolMetric] = {}
        self._rounds = 0
        self._runs = 0
        self._round_limit_hits = 0
        self._completion_errors = 0
        self._lock = Lock()

    def observe_run(self, *, rounds: int, round_limit_hit: bool = False, completion_error: bool = False) -> None:
        with self._lock:
            self._runs += 1
            self._rounds += rounds
            if round_limit_hit:
                self._round_limit_hits += 1
            if completion_error:
                self._completion_errors += 1

    def observe_tool(self, name: str, *, error: bool) -> None:
        with self._lock:
            metric = self._tools.setdefault(name, ToolMetric())
            metric.calls += 1
            if error:
                metric.errors += 1

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            avg_rounds = self._rounds / self._runs if self._runs else 0.0
            return {
                "runs": self._runs,
                "avg_rounds": round(avg_rounds, 2),
                "round_limit_hits": self._round_limit_hits,
                "completion_errors": self._completion_errors,
                "tools": {
                    name: {"calls": metric.calls, "errors": metric.errors}
                    for name, metric in sorted(self._tools.items())
                },
            }


request_metrics = InMemoryRequestMetrics()
assistant_metrics = InMemoryAssistantMetrics()
