from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

USER_MESSAGE_MAX_CHARS = 8000


# Entrada HTTP
class ChatMessageIn(BaseModel):
    role: Literal["user", "assistant"]
    content: str

    # Respostas do assistente voltam como histórico e podem ser longas (listagens)
    @model_validator(mode="after")
    def _limit_user_content(self) -> "ChatMessageIn":
        if self.role == "user" and len(self.content) > USER_MESSAGE_MAX_CHARS:
            raise ValueError(f"mensagem do usuário excede {USER_MESSAGE_MAX_CHARS} caracteres")
        return self


class ChatRequest(BaseModel):
    messages: List[ChatMessageIn] = Field(default_factory=list)
    message: Optional[str] = None
    context: Optional[dict[str, Any]] = None

    def conversation(self) -> list[dict[str, Any]]:
        history = [item.model_dump() for item in self.messages]
        if not history and self.message and self.message.strip():
            history.append({"role": "user", "content": self.message.strip()})
        return history


# Resposta do endpoint de completion
class ToolCallFunction(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    arguments: Optional[str] = None


class ToolCall(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "function"
    function: ToolCallFunction


class AssistantMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = "assistant"
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None


class CompletionChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: AssistantMessage
    finish_reason: Optional[str] = None


class CompletionResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    choices: List[CompletionChoice] = Field(default_factory=list)
