# app/deps.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.ai.executor import ToolExecutor
from app.ai.service import ChatOrchestrator, build_provider
from app.core.database import get_db
from app.core.rate_limiter import InMemoryRateLimiterService, RateLimiterService
from app.core.request_context import set_request_context
from app.models.profile import Profile
from app.services.auth import decode_access_token
from app.services.store import DataStore, SQLAlchemyDataStore
from app.services.usage_meter import UsageMeter

bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)

chat_rate_limiter: RateLimiterService = InMemoryRateLimiterService()


@dataclass(frozen=True)
class TenantPrincipal:
    user_id: str
    tenant_id: str


def get_store(db: Session = Depends(get_db)) -> DataStore:
    return SQLAlchemyDataStore(db)


def get_usage_meter(store: DataStore = Depends(get_store)) -> UsageMeter:
    return UsageMeter(store)


def get_orchestrator(store: DataStore = Depends(get_store)) -> ChatOrchestrator:
    return ChatOrchestrator(build_provider(), ToolExecutor(store))


def get_rate_limiter() -> RateLimiterService:
    return chat_rate_limiter


def get_optional_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> TenantPrincipal | None:
    """Resolve o tenant a partir do bearer token.

    Devolve None quando o token falta, é inválido ou o profile não tem
    tenant; a rota decide a resposta 401.
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        payload = decode_access_token(credentials.credentials)
    except ValueError:
        logger.info("invalid bearer token")
        return None

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id.strip():
        return None

    profile = db.query(Profile).filter(Profile.id == user_id.strip()).first()
    if profile is None or not profile.tenant_id:
        logger.info("profile without tenant", extra={"user_id": user_id})
        return None

    principal = TenantPrincipal(user_id=str(profile.id), tenant_id=str(profile.tenant_id))
    request.state.user_id = principal.user_id
    request.state.tenant_id = principal.tenant_id
    set_request_context(tenant_id=principal.tenant_id, user_id=principal.user_id)
    return principal


def require_platform_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Profile:
    """Apenas profiles com role "admin" (equipe da plataforma)."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token ausente",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido ou expirado",
            headers={"WWW-Authenticate": "Bearer"},
        )

    profile = db.query(Profile).filter(Profile.id == str(payload.get("sub") or "")).first()
    if profile is None or (profile.role or "").strip().lower() != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Sem permissão")
    return profile
