from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import ValidationError

from app.ai.base import CompletionError, CompletionProvider
from app.ai.catalog import TOOL_DEFINITIONS
from app.ai.executor import ToolExecutor
from app.ai.openai_provider import OpenAIProvider
from app.ai.prompts import build_system_prompt
from app.ai.schema import CompletionChoice, CompletionResponse
from app.core.config import AI_CHAT_TIMEOUT_SECONDS, AI_MAX_ROUNDS, OPENAI_API_KEY
from app.core.metrics import InMemoryAssistantMetrics, assistant_metrics

logger = logging.getLogger(__name__)

STEP_LIMIT_MESSAGE = "Limite de etapas atingido. Tente reformular."
NOT_CONFIGURED_MESSAGE = (
    "O assistente não está configurado: defina OPENAI_API_KEY no servidor ou entre em contato com o suporte."
)
QUOTA_MESSAGE = (
    "O assistente está temporariamente indisponível: a cota ou o faturamento da conta do provedor de IA "
    "precisa de atenção. Tente novamente mais tarde ou entre em contato com o suporte."
)
CREDENTIALS_MESSAGE = (
    "O assistente não está disponível no momento: a credencial do provedor de IA foi recusada. "
    "Entre em contato com o suporte."
)
GENERIC_MESSAGE = "O assistente encontrou um erro. Por favor, tente novamente ou entre em contato com o suporte."
TIMEOUT_MESSAGE = "O assistente demorou demais para responder. Por favor, tente novamente."
EMPTY_REPLY_MESSAGE = "Resposta vazia do assistente."
NO_CONTENT_MESSAGE = "Sem resposta."


def friendly_completion_error(exc: CompletionError) -> str:
    if exc.status_code == 429:
        return QUOTA_MESSAGE
    if exc.status_code == 401:
        return CREDENTIALS_MESSAGE
    return GENERIC_MESSAGE


def parse_tool_arguments(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


@dataclass
class ChatResult:
    message: str | None = None
    error: str | None = None
    finish_reason: str | None = None
    rounds: int = 0
    tools_called: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        if self.error is not None:
            return {"error": self.error}
        return {"message": self.message, "finish_reason": self.finish_reason}


def build_provider() -> CompletionProvider | None:
    if not OPENAI_API_KEY:
        return None
    return OpenAIProvider(OPENAI_API_KEY)


class ChatOrchestrator:
    """Loop limitado modelo <-> ferramentas para uma única requisição de chat."""

    def __init__(
        self,
        provider: CompletionProvider | None,
        executor: ToolExecutor,
        *,
        tools: list[dict[str, Any]] | None = None,
        max_rounds: int = AI_MAX_ROUNDS,
        timeout_seconds: float = AI_CHAT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        metrics: InMemoryAssistantMetrics = assistant_metrics,
    ) -> None:
        self._provider = provider
        self._executor = executor
        self._tools = TOOL_DEFINITIONS if tools is None else tools
        self._max_rounds = max_rounds
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._metrics = metrics

    def run(self, messages: list[dict[str, Any]], tenant_id: str, tenant_name: str | None = None) -> ChatResult:
        if self._provider is None:
            logger.error("assistant provider not configured")
            return ChatResult(error=NOT_CONFIGURED_MESSAGE)

        conversation: list[dict[str, Any]] = [
            {"role": "system", "content": build_system_prompt(tenant_name)},
            *messages,
        ]
        result = ChatResult()
        deadline = self._clock() + self._timeout_seconds
        completion_failed = False

        try:
            while result.rounds < self._max_rounds:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    logger.warning("chat timed out", extra={"round": result.rounds})
                    result.error = TIMEOUT_MESSAGE
                    return result

                result.rounds += 1
                raw = self._provider.complete(conversation, self._tools, timeout=remaining)
                choice = self._first_choice(raw)
                if choice is None:
                    result.error = EMPTY_REPLY_MESSAGE
                    return result

                tool_calls = choice.message.tool_calls or []
                if not tool_calls:
                    result.message = choice.message.content or NO_CONTENT_MESSAGE
                    result.finish_reason = choice.finish_reason
                    return result

                for call in tool_calls:
                    name = call.function.name
                    args = parse_tool_arguments(call.function.arguments)
                    output = self._execute(name, args, tenant_id)
                    result.tools_called.append(name)
                    conversation.append(
                        {"role": "assistant", "content": None, "tool_calls": [call.model_dump(exclude_none=True)]}
                    )
                    conversation.append(
                        {
                            "role": "tool",
                            "tool_call_id": call.id,
                            "content": json.dumps(output, ensure_ascii=False, default=str),
                        }
                    )

            logger.warning("chat round limit reached", extra={"round": result.rounds})
            result.message = STEP_LIMIT_MESSAGE
            result.finish_reason = "length"
            return result
        except CompletionError as exc:
            completion_failed = True
            logger.warning(
                "completion failed: %s", exc, extra={"round": result.rounds, "status_code": exc.status_code}
            )
            result.error = friendly_completion_error(exc)
            return result
        finally:
            self._metrics.observe_run(
                rounds=result.rounds,
                round_limit_hit=result.finish_reason == "length",
                completion_error=completion_failed,
            )
            logger.info(
                "chat finished",
                extra={"round": result.rounds, "finish_reason": result.finish_reason},
            )

    def _first_choice(self, raw: dict[str, Any]) -> CompletionChoice | None:
        try:
            response = CompletionResponse.model_validate(raw)
        except ValidationError:
            logger.warning("invalid completion payload")
            return None
        return response.choices[0] if response.choices else None

    def _execute(self, name: str, args: dict[str, Any], tenant_id: str) -> dict[str, Any]:
        try:
            return self._executor.execute(name, args, tenant_id)
        except Exception:
            logger.exception("Erro executando tool_call %s", name)
            return {"error": f"tool_error:{name}"}
