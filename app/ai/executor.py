from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable

from app.ai import tools
from app.ai.tools import ToolContext
from app.core.metrics import UNKNOWN_TOOL_METRIC, InMemoryAssistantMetrics, assistant_metrics
from app.core.request_context import set_tool_context
from app.services.store import DataStore, StoreError

logger = logging.getLogger(__name__)

ToolHandler = Callable[[ToolContext, dict[str, Any]], dict[str, Any]]

TOOL_HANDLERS: dict[str, ToolHandler] = {
    "list_customers": tools.list_customers,
    "create_customer": tools.create_customer,
    "list_vehicles": tools.list_vehicles,
    "create_vehicle": tools.create_vehicle,
    "list_quotes": tools.list_quotes,
    "create_quote_from_diagnostic": tools.create_quote_from_diagnostic,
    "list_service_items": tools.list_service_items,
    "create_service_item": tools.create_service_item,
    "get_dashboard_stats": tools.get_dashboard_stats,
    "get_vehicle_history": tools.get_vehicle_history,
    "get_diagnostic_suggestions": tools.get_diagnostic_suggestions,
    "create_maintenance_reminder": tools.create_maintenance_reminder,
    "list_suppliers": tools.list_suppliers,
    "create_supplier": tools.create_supplier,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ToolExecutor:
    """Executa uma chamada de ferramenta sempre no escopo de um único tenant.

    Nunca levanta exceção para o orquestrador: falhas viram `{"error": ...}`
    dentro do resultado devolvido ao modelo.
    """

    def __init__(
        self,
        store: DataStore,
        *,
        handlers: dict[str, ToolHandler] | None = None,
        clock: Callable[[], datetime] = _utcnow,
        metrics: InMemoryAssistantMetrics = assistant_metrics,
    ) -> None:
        self._store = store
        self._handlers = handlers if handlers is not None else TOOL_HANDLERS
        self._clock = clock
        self._metrics = metrics

    def execute(self, name: str | None, args: Any, tenant_id: str | None) -> dict[str, Any]:
        if not tenant_id:
            return {"error": "tenant_required"}

        handler = self._handlers.get(name or "")
        if handler is None:
            self._metrics.observe_tool(UNKNOWN_TOOL_METRIC, error=True)
            return {"error": f"Unknown tool: {name}"}

        ctx = ToolContext(store=self._store, tenant_id=str(tenant_id), now=self._clock())
        start = time.perf_counter()
        set_tool_context(name)
        try:
            result = handler(ctx, args if isinstance(args, dict) else {})
        except StoreError:
            logger.exception("Erro executando tool_call %s", name)
            result = {"error": "data store unavailable, try again"}
        finally:
            set_tool_context(None)

        failed = "error" in result
        self._metrics.observe_tool(name, error=failed)
        logger.info(
            "tool executed",
            extra={
                "tool": name,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                "status_code": 400 if failed else 200,
            },
        )
        return result
