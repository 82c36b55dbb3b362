from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
import app.models  # noqa: F401
from app.models.tenant import Tenant
from app.services.store import SQLAlchemyDataStore
from tests.fixtures_data import FIXED_NOW_ISO, TENANT_A, TENANT_B


def _memory_session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def session_factory():
    return _memory_session_factory()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    session.add(Tenant(**TENANT_A))
    session.add(Tenant(**TENANT_B))
    session.commit()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db):
    return SQLAlchemyDataStore(db)


@pytest.fixture()
def fixed_now():
    return datetime.fromisoformat(FIXED_NOW_ISO)
