import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.ai.catalog import CATALOG_VERSION, TOOL_NAMES
from app.core.config import CORS_ORIGINS, DATABASE_URL, ENV
from app.core.database import Base, engine
from app.core.logging_setup import configure_logging
from app.core.startup_checks import (
    ensure_migrations_applied,
    ensure_tables_exist,
    validate_database_environment,
    warn_missing_assistant_credentials,
)
from app.middleware.observability import ObservabilityMiddleware
import app.models  # garante que os models são importados antes do create_all

from app.routers.ai_chat import router as ai_chat_router
from app.routers.internal_metrics import router as internal_metrics_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
ENVIRONMENT = os.getenv("ENVIRONMENT", ENV).strip().lower()
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)
REQUIRED_TABLES = ("tenants", "profiles", "customers", "vehicles", "quotes", "quote_items", "service_items")


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="Oficina Assistant API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        # Em dev (SQLite) as tabelas são criadas direto; em produção, use migrations.
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        else:
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
        ensure_tables_exist(engine=engine, tables=REQUIRED_TABLES)
        warn_missing_assistant_credentials()
        logger.info("%s assistant tools catalog=v%s tools=%s", STARTUP_PREFIX, CATALOG_VERSION, len(TOOL_NAMES))
    except Exception:
        logger.exception("%s ERROR startup failed env=%s", STARTUP_PREFIX, ENVIRONMENT)
        raise


# Routers
app.include_router(ai_chat_router)
app.include_router(internal_metrics_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
