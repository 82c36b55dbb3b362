from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.core.database import generate_uuid
from app.models.profile import Profile
from app.models.tenant import Tenant


def ensure_tenant_tables(engine: Engine) -> None:
    inspector = inspect(engine)
    missing = [table for table in ("tenants", "profiles") if not inspector.has_table(table)]
    if missing:
        raise RuntimeError(
            f"Tabelas não encontradas ({', '.join(missing)}). Rode `alembic upgrade head` primeiro."
        )


def upsert_tenant_profile(
    db: Session,
    *,
    tenant_name: str,
    email: str,
    full_name: str | None = None,
    role: str = "user",
    credits_limit: int | None = None,
) -> tuple[Tenant, Profile, bool]:
    """Cria (ou atualiza) a oficina e o profile do usuário que fala com o assistente."""
    profile = db.query(Profile).filter(Profile.email == email).first()
    if profile and profile.tenant_id:
        tenant = db.query(Tenant).filter(Tenant.id == profile.tenant_id).first()
        if tenant:
            tenant.name = tenant_name
            tenant.ai_credits_limit = credits_limit
            profile.full_name = full_name or profile.full_name
            profile.role = role
            db.commit()
            db.refresh(tenant)
            db.refresh(profile)
            return tenant, profile, False

    tenant = Tenant(name=tenant_name, ai_credits_limit=credits_limit, ai_credits_used_this_month=0)
    db.add(tenant)
    db.flush()

    if profile is None:
        profile = Profile(id=generate_uuid(), email=email)
        db.add(profile)
    profile.tenant_id = tenant.id
    profile.full_name = full_name
    profile.role = role

    db.commit()
    db.refresh(tenant)
    db.refresh(profile)
    return tenant, profile, True
