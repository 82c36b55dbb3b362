#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from app.core.config import IS_DEV, JWT_SECRET_KEY  # noqa: E402
from app.core.database import SessionLocal, engine  # noqa: E402
from app.services.auth import create_access_token  # noqa: E402
from app.services.tenant_bootstrap import ensure_tenant_tables, upsert_tenant_profile  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cria oficina + profile para testar o assistente em DEV.")
    parser.add_argument("--name", required=True, help="Nome da oficina")
    parser.add_argument("--email", required=True, help="Email do usuário")
    parser.add_argument("--full-name", help="Nome do usuário")
    parser.add_argument("--role", default="user", help="Role do profile (admin = equipe da plataforma)")
    parser.add_argument("--credits", type=int, help="Limite mensal de créditos (omitido = ilimitado)")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Permite executar fora de ENV=dev",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if not IS_DEV and not args.force:
        print("Seed disponível só em DEV. Use --force para executar mesmo assim.")
        return 1

    try:
        ensure_tenant_tables(engine)
    except RuntimeError as exc:
        print(str(exc))
        return 1

    db = SessionLocal()
    try:
        tenant, profile, created = upsert_tenant_profile(
            db,
            tenant_name=args.name,
            email=args.email,
            full_name=args.full_name,
            role=args.role,
            credits_limit=args.credits,
        )
    finally:
        db.close()

    action = "created" if created else "updated"
    print(f"Tenant {action}: id={tenant.id} name={tenant.name} profile={profile.id}")
    if JWT_SECRET_KEY:
        print(f"Bearer token (24h): {create_access_token(profile.id)}")
    else:
        print("Defina JWT_SECRET_KEY para gerar um token de teste.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
