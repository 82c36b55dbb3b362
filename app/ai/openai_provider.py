from __future__ import annotations

import logging
from typing import Any

import httpx

from app.ai.base import CompletionError
from app.core.config import AI_REQUEST_TIMEOUT_SECONDS, OPENAI_BASE_URL, OPENAI_CHAT_MODEL

logger = logging.getLogger(__name__)


def _extract_error_message(res: httpx.Response) -> str:
    try:
        payload = res.json()
    except ValueError:
        return res.text
    if isinstance(payload, dict):
        err = payload.get("error") or {}
        if isinstance(err, dict):
            return err.get("message") or payload.get("message") or res.text
        return str(err)
    return res.text


class OpenAIProvider:
    """Cliente do endpoint /chat/completions (OpenAI ou compatível).

    Uma chamada por rodada, sem retry: quem decide o que fazer com a falha
    é o orquestrador.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        *,
        model: str = OPENAI_CHAT_MODEL,
        base_url: str = OPENAI_BASE_URL,
        timeout: float = AI_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.model = model
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"model": self.model, "messages": messages}
        if tools:
            body["tools"] = tools
            body["tool_choice"] = "auto"

        effective_timeout = self._timeout if timeout is None else min(timeout, self._timeout)
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            with httpx.Client(
                base_url=self._base_url,
                headers=headers,
                timeout=effective_timeout,
                transport=self._transport,
            ) as client:
                res = client.post("/chat/completions", json=body)
        except httpx.TimeoutException as exc:
            raise CompletionError("OpenAI timeout", status_code=None) from exc
        except httpx.HTTPError as exc:
            raise CompletionError(f"OpenAI erro de rede: {exc.__class__.__name__}", status_code=None) from exc

        if res.status_code >= 400:
            message = _extract_error_message(res)
            raise CompletionError(f"OpenAI erro HTTP {res.status_code}: {message}", status_code=res.status_code)

        try:
            payload = res.json()
        except ValueError as exc:
            raise CompletionError("Resposta inválida do modelo", status_code=res.status_code) from exc
        if not isinstance(payload, dict):
            raise CompletionError("Resposta inválida do modelo", status_code=res.status_code)
        return payload
