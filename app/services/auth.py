from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from app.core.config import JWT_ALGORITHM, JWT_AUDIENCE, JWT_SECRET_KEY

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24h


# =========================
# JWT HELPERS
# =========================
def create_access_token(
    user_id: str,
    extra: Optional[Dict[str, Any]] = None,
    expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
    secret: str | None = None,
) -> str:
    """
    Token no mesmo formato do provedor de identidade ("sub" = id do profile).
    Usado pelo script de seed e pelos testes.
    """
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if JWT_AUDIENCE:
        payload["aud"] = JWT_AUDIENCE
    if extra:
        payload.update(extra)

    return jwt.encode(payload, secret or JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, secret: str | None = None) -> Dict[str, Any]:
    """
    Retorna o payload do JWT ou levanta ValueError se inválido.
    """
    key = secret or JWT_SECRET_KEY
    if not key:
        raise ValueError("JWT_SECRET_KEY não configurado")
    options = {} if JWT_AUDIENCE else {"verify_aud": False}
    try:
        return jwt.decode(token, key, algorithms=[JWT_ALGORITHM], audience=JWT_AUDIENCE, options=options)
    except JWTError as e:
        raise ValueError("Token inválido ou expirado") from e
