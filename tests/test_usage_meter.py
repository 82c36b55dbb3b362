from datetime import datetime, timezone

import pytest

from app.models.tenant import Tenant
from app.services.usage_meter import UsageMeter, effective_limit, first_of_next_month


def _set_tenant(db, tenant_id, **fields):
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    for key, value in fields.items():
        setattr(tenant, key, value)
    db.commit()


def _meter(store, now):
    return UsageMeter(store, clock=lambda: now)


NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
APRIL = datetime(2026, 4, 1, tzinfo=timezone.utc)


def test_null_limit_is_unmetered_and_never_increments(db, store):
    decision = _meter(store, NOW).check_and_consume("tenant-a")

    assert decision.allowed is True
    assert decision.limit is None
    assert decision.counters() == {}
    assert decision.tenant_name == "Oficina Alfa"
    assert db.query(Tenant).filter(Tenant.id == "tenant-a").first().ai_credits_used_this_month == 0


def test_consumes_one_credit_per_request(db, store):
    _set_tenant(db, "tenant-a", ai_credits_limit=3, ai_credits_used_this_month=1, ai_credits_reset_at=APRIL)

    decision = _meter(store, NOW).check_and_consume("tenant-a")

    assert decision.allowed is True
    assert decision.counters() == {"credits_used_this_month": 2, "credits_limit": 3}


def test_denies_when_limit_reached(db, store):
    _set_tenant(db, "tenant-a", ai_credits_limit=3, ai_credits_used_this_month=3, ai_credits_reset_at=APRIL)

    decision = _meter(store, NOW).check_and_consume("tenant-a")

    assert decision.allowed is False
    assert decision.used == 3
    assert decision.limit == 3


def test_reset_happens_before_limit_check_then_denies_within_month(db, store):
    _set_tenant(
        db,
        "tenant-a",
        ai_credits_limit=1,
        ai_credits_used_this_month=1,
        ai_credits_reset_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )
    meter = _meter(store, NOW)

    first = meter.check_and_consume("tenant-a")
    second = meter.check_and_consume("tenant-a")

    assert first.allowed is True
    assert first.used == 1
    assert second.allowed is False
    assert second.used == 1
    db.expire_all()
    tenant = db.query(Tenant).filter(Tenant.id == "tenant-a").first()
    assert tenant.ai_credits_reset_at.replace(tzinfo=timezone.utc) == APRIL


def test_missing_reset_date_is_scheduled_without_zeroing(db, store):
    _set_tenant(db, "tenant-a", ai_credits_limit=10, ai_credits_used_this_month=4, ai_credits_reset_at=None)

    decision = _meter(store, NOW).check_and_consume("tenant-a")

    assert decision.used == 5
    db.expire_all()
    tenant = db.query(Tenant).filter(Tenant.id == "tenant-a").first()
    assert tenant.ai_credits_reset_at.replace(tzinfo=timezone.utc) == APRIL


def test_invalid_limit_falls_back_to_default(db, store):
    _set_tenant(db, "tenant-a", ai_credits_limit=0, ai_credits_used_this_month=0, ai_credits_reset_at=APRIL)

    decision = UsageMeter(store, clock=lambda: NOW, default_limit=50).check_and_consume("tenant-a")

    assert decision.limit == 50
    assert decision.allowed is True


def test_unknown_tenant_is_not_metered(store):
    decision = _meter(store, NOW).check_and_consume("tenant-inexistente")

    assert decision.allowed is True
    assert decision.metered is False


def test_only_the_requesting_tenant_is_charged(db, store):
    _set_tenant(db, "tenant-a", ai_credits_limit=5, ai_credits_used_this_month=0, ai_credits_reset_at=APRIL)
    _set_tenant(db, "tenant-b", ai_credits_limit=5, ai_credits_used_this_month=0, ai_credits_reset_at=APRIL)

    _meter(store, NOW).check_and_consume("tenant-a")

    db.expire_all()
    assert db.query(Tenant).filter(Tenant.id == "tenant-b").first().ai_credits_used_this_month == 0


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, None), (10, 10), ("7", 7), (0, 50), (-2, 50), ("abc", 50)],
)
def test_effective_limit(raw, expected):
    assert effective_limit(raw, default=50) == expected


def test_first_of_next_month_rolls_over_year():
    assert first_of_next_month(datetime(2026, 12, 31, 23, 0, tzinfo=timezone.utc)) == datetime(
        2027, 1, 1, tzinfo=timezone.utc
    )
