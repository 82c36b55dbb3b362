from datetime import date, datetime, timezone

import pytest

from app.ai.executor import ToolExecutor
from app.core.metrics import InMemoryAssistantMetrics
from app.models.quote import Quote
from app.models.supplier import Supplier
from app.services.store import StoreError
from tests.factories import add_customer, add_service_item, add_vehicle
from tests.fixtures_data import CUSTOMER_MARIA


@pytest.fixture()
def metrics():
    return InMemoryAssistantMetrics()


@pytest.fixture()
def executor(store, fixed_now, metrics):
    return ToolExecutor(store, clock=lambda: fixed_now, metrics=metrics)


def _add_quote(db, tenant_id, customer_id, vehicle_id, number, **fields):
    quote = Quote(
        tenant_id=tenant_id,
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        quote_number=number,
        **fields,
    )
    db.add(quote)
    db.commit()
    db.refresh(quote)
    return quote


def test_missing_tenant_is_rejected_before_dispatch(executor):
    assert executor.execute("list_customers", {}, None) == {"error": "tenant_required"}
    assert executor.execute("list_customers", {}, "") == {"error": "tenant_required"}


def test_unknown_tool_returns_error(executor, metrics):
    assert executor.execute("drop_database", {}, "tenant-a") == {"error": "Unknown tool: drop_database"}
    assert executor.execute("apagar_tudo", {}, "tenant-a") == {"error": "Unknown tool: apagar_tudo"}

    tools = metrics.snapshot()["tools"]
    assert tools == {"<unknown>": {"calls": 2, "errors": 2}}


def test_create_customer_then_list_is_tenant_scoped(executor):
    created = executor.execute("create_customer", dict(CUSTOMER_MARIA), "tenant-a")

    assert created["created"]["name"] == "Maria"
    assert created["created"]["phone"] == "11999999999"
    assert created["created"]["id"]
    assert "Maria" in created["message"]

    tenant_a = executor.execute("list_customers", {"search_name": "mar"}, "tenant-a")
    tenant_b = executor.execute("list_customers", {"search_name": "mar"}, "tenant-b")

    assert [row["id"] for row in tenant_a["customers"]] == [created["created"]["id"]]
    assert tenant_b == {"customers": []}


def test_create_customer_requires_name_and_phone(executor, store):
    result = executor.execute("create_customer", {"name": "Maria"}, "tenant-a")

    assert result == {"error": "name and phone are required"}
    assert store.count("customers") == 0


def test_non_dict_arguments_are_treated_as_empty(executor):
    assert executor.execute("create_customer", ["Maria"], "tenant-a") == {"error": "name and phone are required"}


def test_list_calls_never_leak_other_tenant_rows(executor, db):
    for tenant_id in ("tenant-a", "tenant-b"):
        customer = add_customer(db, tenant_id, name="José")
        vehicle = add_vehicle(db, tenant_id, customer.id, plate="XYZ9A99")
        add_service_item(db, tenant_id, name="Troca de óleo", sale_price=100)
        db.add(Supplier(tenant_id=tenant_id, name="Auto Peças"))
        db.commit()
        _add_quote(db, tenant_id, customer.id, vehicle.id, "COT-000001")

    listings = {
        "list_customers": "customers",
        "list_vehicles": "vehicles",
        "list_quotes": "quotes",
        "list_service_items": "service_items",
        "list_suppliers": "suppliers",
    }
    tenant_a_ids = {
        key: {row["id"] for row in executor.execute(tool, {}, "tenant-a")[key]} for tool, key in listings.items()
    }
    tenant_b_ids = {
        key: {row["id"] for row in executor.execute(tool, {}, "tenant-b")[key]} for tool, key in listings.items()
    }

    for key in listings.values():
        assert len(tenant_a_ids[key]) == 1
        assert tenant_a_ids[key].isdisjoint(tenant_b_ids[key])


def test_create_vehicle_uppercases_plate_and_checks_customer_tenant(executor, db):
    own = add_customer(db, "tenant-a")
    foreign = add_customer(db, "tenant-b")

    created = executor.execute(
        "create_vehicle",
        {"customer_id": own.id, "license_plate": "abc1d23", "brand": "VW", "model": "Gol", "year": "2015"},
        "tenant-a",
    )
    rejected = executor.execute(
        "create_vehicle",
        {"customer_id": foreign.id, "license_plate": "abc1d23", "brand": "VW", "model": "Gol"},
        "tenant-a",
    )

    assert created["created"]["license_plate"] == "ABC1D23"
    assert "VW Gol - ABC1D23" in created["message"]
    assert rejected == {"error": "customer not found"}


def test_create_vehicle_requires_fields(executor):
    result = executor.execute("create_vehicle", {"license_plate": "AAA0000"}, "tenant-a")

    assert result["error"].startswith("customer_id, license_plate, brand and model")


def test_list_vehicles_filters_by_plate(executor, db):
    customer = add_customer(db, "tenant-a")
    add_vehicle(db, "tenant-a", customer.id, plate="QWE1234")
    add_vehicle(db, "tenant-a", customer.id, plate="RTY5678")

    result = executor.execute("list_vehicles", {"license_plate": "qwe"}, "tenant-a")

    assert [row["license_plate"] for row in result["vehicles"]] == ["QWE1234"]


def test_vehicle_history_is_tenant_scoped_and_sorted(executor, db):
    customer = add_customer(db, "tenant-a")
    vehicle = add_vehicle(db, "tenant-a", customer.id)
    _add_quote(db, "tenant-a", customer.id, vehicle.id, "COT-000001", service_date=date(2026, 1, 10))
    _add_quote(db, "tenant-a", customer.id, vehicle.id, "COT-000002", service_date=date(2026, 2, 20))

    history = executor.execute("get_vehicle_history", {"vehicle_id": vehicle.id}, "tenant-a")
    foreign = executor.execute("get_vehicle_history", {"vehicle_id": vehicle.id}, "tenant-b")

    assert history["vehicle"]["id"] == vehicle.id
    assert [row["quote_number"] for row in history["quotes"]] == ["COT-000002", "COT-000001"]
    assert foreign == {"error": "vehicle not found"}
    assert executor.execute("get_vehicle_history", {}, "tenant-a") == {"error": "vehicle_id required"}


def test_dashboard_stats_current_month_revenue_and_status_counts(executor, db):
    customer = add_customer(db, "tenant-a")
    vehicle = add_vehicle(db, "tenant-a", customer.id)
    in_month = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
    last_month = datetime(2026, 2, 27, 10, 0, tzinfo=timezone.utc)
    _add_quote(
        db, "tenant-a", customer.id, vehicle.id, "COT-000001",
        status="concluida", amount_paid=300, amount_pending=50, created_date=in_month,
    )
    _add_quote(
        db, "tenant-a", customer.id, vehicle.id, "COT-000002",
        status="concluida", amount_paid=999, amount_pending=0, created_date=last_month,
    )
    _add_quote(db, "tenant-a", customer.id, vehicle.id, "COT-000003", status="em_analise", created_date=in_month)

    other_customer = add_customer(db, "tenant-b")
    other_vehicle = add_vehicle(db, "tenant-b", other_customer.id)
    _add_quote(
        db, "tenant-b", other_customer.id, other_vehicle.id, "COT-000001",
        status="concluida", amount_paid=5000, created_date=in_month,
    )

    stats = executor.execute("get_dashboard_stats", {}, "tenant-a")

    assert stats["month"] == "2026-03"
    assert stats["revenue_this_month"] == 300
    assert stats["pending_payment"] == 50
    assert stats["quotes_concluida"] == 2
    assert stats["quotes_em_analise"] == 1
    assert stats["quotes_aprovada"] == 0
    assert stats["quotes_recusada"] == 0


def test_diagnostic_suggestions_passthrough(executor):
    result = executor.execute("get_diagnostic_suggestions", {"symptom": "xyz-nonsense-input"}, "tenant-a")

    assert result["causes"]
    assert result["estimated_hours"] == 1


def test_create_maintenance_reminder_persists_pending(executor, db, store):
    customer = add_customer(db, "tenant-a")
    vehicle = add_vehicle(db, "tenant-a", customer.id)

    result = executor.execute(
        "create_maintenance_reminder",
        {
            "customer_id": customer.id,
            "vehicle_id": vehicle.id,
            "service_name": "Troca de óleo",
            "reminder_type": "tempo",
            "target_date": "2026-09-01",
        },
        "tenant-a",
    )

    assert result["created"]["target_date"] == date(2026, 9, 1)
    reminder = store.first("maintenance_reminders", columns=("status", "tenant_id"))
    assert reminder == {"status": "pendente", "tenant_id": "tenant-a"}


def test_create_maintenance_reminder_validation(executor, db):
    customer = add_customer(db, "tenant-a")
    vehicle = add_vehicle(db, "tenant-b", add_customer(db, "tenant-b").id)
    base = {"customer_id": customer.id, "service_name": "Revisão", "reminder_type": "tempo"}

    assert "required" in executor.execute("create_maintenance_reminder", base, "tenant-a")["error"]
    assert executor.execute(
        "create_maintenance_reminder", {**base, "vehicle_id": vehicle.id}, "tenant-a"
    ) == {"error": "vehicle not found"}
    assert executor.execute(
        "create_maintenance_reminder", {**base, "vehicle_id": vehicle.id, "target_date": "amanhã"}, "tenant-a"
    ) == {"error": "target_date must be YYYY-MM-DD"}


def test_create_supplier_and_list_sorted_by_name(executor):
    assert executor.execute("create_supplier", {}, "tenant-a") == {"error": "name is required"}
    executor.execute("create_supplier", {"name": "Zeta Peças"}, "tenant-a")
    executor.execute("create_supplier", {"name": "Alfa Distribuidora", "phone": "1133334444"}, "tenant-a")

    result = executor.execute("list_suppliers", {}, "tenant-a")

    assert [row["name"] for row in result["suppliers"]] == ["Alfa Distribuidora", "Zeta Peças"]


def test_create_service_item_resolves_supplier_and_refuses_duplicates(executor, db):
    db.add(Supplier(tenant_id="tenant-a", name="Auto Peças Central"))
    db.commit()

    created = executor.execute(
        "create_service_item",
        {"name": "Pastilha de freio", "type": "PECA", "sale_price": 180, "supplier_name": "central", "current_stock": -3},
        "tenant-a",
    )
    duplicate = executor.execute(
        "create_service_item",
        {"name": "pastilha de freio", "type": "peca", "sale_price": 200},
        "tenant-a",
    )

    assert created["created"]["type"] == "peca"
    assert created["created"]["supplier_id"] is not None
    assert "R$ 180,00" in created["message"]
    assert duplicate["error"] == "already_exists"


def test_create_service_item_validation_and_type_default(executor):
    assert "required" in executor.execute("create_service_item", {"name": "Lavagem"}, "tenant-a")["error"]
    assert executor.execute(
        "create_service_item", {"name": "Lavagem", "type": "servico", "sale_price": -1}, "tenant-a"
    ) == {"error": "sale_price must be a non-negative number"}

    created = executor.execute(
        "create_service_item", {"name": "Lavagem", "type": "outro", "sale_price": "35.5"}, "tenant-a"
    )
    assert created["created"]["type"] == "servico"
    assert created["created"]["sale_price"] == 35.5


def test_list_service_items_hides_inactive_and_filters_type(executor, db):
    add_service_item(db, "tenant-a", name="Filtro de ar", type="peca", sale_price=40)
    add_service_item(db, "tenant-a", name="Alinhamento", type="servico", sale_price=80)
    add_service_item(db, "tenant-a", name="Balanceamento", type="servico", sale_price=60, is_active=False)

    everything = executor.execute("list_service_items", {}, "tenant-a")
    parts = executor.execute("list_service_items", {"type_filter": "PECA"}, "tenant-a")

    assert [row["name"] for row in everything["service_items"]] == ["Alinhamento", "Filtro de ar"]
    assert [row["name"] for row in parts["service_items"]] == ["Filtro de ar"]


def test_store_failure_becomes_tool_error(store, fixed_now, metrics):
    def broken(_ctx, _args):
        raise StoreError("connection lost")

    executor = ToolExecutor(store, handlers={"list_customers": broken}, clock=lambda: fixed_now, metrics=metrics)

    assert executor.execute("list_customers", {}, "tenant-a") == {"error": "data store unavailable, try again"}
    assert metrics.snapshot()["tools"]["list_customers"] == {"calls": 1, "errors": 1}
