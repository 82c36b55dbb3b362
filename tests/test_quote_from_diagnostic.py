from datetime import date, datetime, timezone

import pytest

from app.ai.executor import ToolExecutor
from app.ai.tools import build_quote_items, local_date, next_quote_number
from app.core.metrics import InMemoryAssistantMetrics
from app.models.quote import Quote
from app.services.store import SQLAlchemyDataStore, StoreError, eq
from tests.factories import add_customer, add_service_item, add_vehicle
from tests.fixtures_data import CATALOG_ITEMS


@pytest.fixture()
def workshop(db):
    customer = add_customer(db, "tenant-a", name="Maria")
    vehicle = add_vehicle(db, "tenant-a", customer.id)
    catalog = {item["name"]: add_service_item(db, "tenant-a", **item) for item in CATALOG_ITEMS}
    return customer, vehicle, catalog


def _executor(store, fixed_now):
    return ToolExecutor(store, clock=lambda: fixed_now, metrics=InMemoryAssistantMetrics())


def _quote_args(customer, vehicle, suggested, notes="Carro falhando em marcha lenta"):
    return {
        "customer_id": customer.id,
        "vehicle_id": vehicle.id,
        "diagnostic_notes": notes,
        "suggested_items": suggested,
    }


def _items_for(store, quote_id):
    return store.select(
        "quote_items",
        [eq("quote_id", quote_id)],
        columns=("quote_id", "service_item_id", "service_item_name", "unit_price", "quantity", "total"),
    )


def test_exact_catalog_match_prices_the_quote(store, fixed_now, workshop):
    customer, vehicle, catalog = workshop

    result = _executor(store, fixed_now).execute(
        "create_quote_from_diagnostic", _quote_args(customer, vehicle, ["Troca de óleo"]), "tenant-a"
    )

    assert result["created"]["quote_number"] == "COT-000001"
    assert result["created"]["total"] == 150.0
    items = _items_for(store, result["created"]["id"])
    assert len(items) == 1
    assert items[0]["service_item_id"] == catalog["Troca de óleo"].id
    assert "1 item(ns)" in result["message"]
    assert "R$ 150,00" in result["message"]


def test_unmatched_suggestion_becomes_zero_priced_freeform_item(store, fixed_now, workshop):
    customer, vehicle, _ = workshop

    result = _executor(store, fixed_now).execute(
        "create_quote_from_diagnostic", _quote_args(customer, vehicle, ["Peça Inexistente XYZ"]), "tenant-a"
    )

    items = _items_for(store, result["created"]["id"])
    assert result["created"]["total"] == 0
    assert items == [
        {
            "quote_id": result["created"]["id"],
            "service_item_id": None,
            "service_item_name": "Peça Inexistente XYZ",
            "unit_price": 0,
            "quantity": 1,
            "total": 0,
        }
    ]
    assert "fora do catálogo" in result["message"]


def test_duplicate_suggestions_use_catalog_item_once(store, fixed_now, workshop):
    customer, vehicle, catalog = workshop

    result = _executor(store, fixed_now).execute(
        "create_quote_from_diagnostic",
        _quote_args(customer, vehicle, ["Troca de óleo", "troca de óleo", "Filtro de ar do motor"]),
        "tenant-a",
    )

    items = _items_for(store, result["created"]["id"])
    catalog_ids = [item["service_item_id"] for item in items if item["service_item_id"]]
    assert sorted(catalog_ids) == sorted([catalog["Troca de óleo"].id, catalog["Filtro de ar"].id])
    assert len(items) == 2
    assert result["created"]["total"] == pytest.approx(195.5)


def test_quote_total_equals_sum_of_items_and_pending(store, fixed_now, workshop):
    customer, vehicle, _ = workshop

    result = _executor(store, fixed_now).execute(
        "create_quote_from_diagnostic",
        _quote_args(customer, vehicle, ["velas", "Filtro de ar", "Limpeza de bicos"]),
        "tenant-a",
    )

    items = _items_for(store, result["created"]["id"])
    quote = store.first(
        "quotes",
        [],
        columns=("subtotal", "total", "amount_paid", "amount_pending", "status", "payment_status", "service_date"),
    )
    assert quote["total"] == pytest.approx(sum(item["unit_price"] * item["quantity"] for item in items))
    assert quote["subtotal"] == quote["total"]
    assert quote["amount_pending"] == quote["total"]
    assert quote["amount_paid"] == 0
    assert quote["status"] == "em_analise"
    assert quote["payment_status"] == "pendente"
    assert quote["service_date"] == fixed_now.date()


def test_inactive_catalog_items_are_not_matched(store, fixed_now, workshop):
    customer, vehicle, _ = workshop

    result = _executor(store, fixed_now).execute(
        "create_quote_from_diagnostic", _quote_args(customer, vehicle, ["Alinhamento"]), "tenant-a"
    )

    items = _items_for(store, result["created"]["id"])
    assert items[0]["service_item_id"] is None
    assert result["created"]["total"] == 0


def test_empty_suggestions_create_placeholder_from_notes(store, fixed_now, workshop):
    customer, vehicle, _ = workshop
    notes = "Cliente relata barulho forte na suspensão dianteira ao passar em lombadas e buracos na via"

    result = _executor(store, fixed_now).execute(
        "create_quote_from_diagnostic", _quote_args(customer, vehicle, [], notes=notes), "tenant-a"
    )

    items = _items_for(store, result["created"]["id"])
    assert len(items) == 1
    assert items[0]["service_item_name"] == notes[:80]
    assert items[0]["unit_price"] == 0


def test_quote_requires_arguments_and_tenant_ownership(store, fixed_now, workshop, db):
    customer, vehicle, _ = workshop
    executor = _executor(store, fixed_now)
    foreign_customer = add_customer(db, "tenant-b")
    other_customer = add_customer(db, "tenant-a", name="João")

    missing = executor.execute(
        "create_quote_from_diagnostic", {"customer_id": customer.id, "vehicle_id": vehicle.id}, "tenant-a"
    )
    not_array = executor.execute(
        "create_quote_from_diagnostic", {**_quote_args(customer, vehicle, []), "suggested_items": "óleo"}, "tenant-a"
    )
    foreign = executor.execute(
        "create_quote_from_diagnostic", _quote_args(foreign_customer, vehicle, ["óleo"]), "tenant-a"
    )
    cross_tenant = executor.execute(
        "create_quote_from_diagnostic", _quote_args(customer, vehicle, ["óleo"]), "tenant-b"
    )
    mismatch = executor.execute(
        "create_quote_from_diagnostic", _quote_args(other_customer, vehicle, ["óleo"]), "tenant-a"
    )

    assert "required" in missing["error"]
    assert "required" in not_array["error"]
    assert foreign == {"error": "customer not found"}
    assert cross_tenant == {"error": "customer not found"}
    assert mismatch == {"error": "vehicle does not belong to customer"}
    assert store.count("quotes") == 0


def test_quote_number_collision_retries_next_number(store, fixed_now, workshop, db):
    customer, vehicle, _ = workshop
    db.add(Quote(tenant_id="tenant-a", customer_id=customer.id, vehicle_id=vehicle.id, quote_number="COT-000002"))
    db.commit()

    result = _executor(store, fixed_now).execute(
        "create_quote_from_diagnostic", _quote_args(customer, vehicle, ["Troca de óleo"]), "tenant-a"
    )

    assert result["created"]["quote_number"] == "COT-000003"
    assert store.count("quotes") == 2


class FailingItemsStore(SQLAlchemyDataStore):
    def insert(self, table, row, *, columns=None):
        if table == "quote_items":
            raise StoreError("insert failed")
        return super().insert(table, row, columns=columns)


def test_item_failure_rolls_back_the_quote(db, fixed_now, workshop):
    customer, vehicle, _ = workshop
    store = FailingItemsStore(db)

    result = _executor(store, fixed_now).execute(
        "create_quote_from_diagnostic", _quote_args(customer, vehicle, ["Troca de óleo"]), "tenant-a"
    )

    assert result == {"error": "quote could not be created"}
    assert store.count("quotes") == 0
    assert store.count("quote_items") == 0


def test_next_quote_number_counts_only_tenant_quotes(store, workshop, db):
    customer, vehicle, _ = workshop
    other_customer = add_customer(db, "tenant-b")
    other_vehicle = add_vehicle(db, "tenant-b", other_customer.id)
    for number in ("COT-000001", "COT-000002"):
        db.add(Quote(tenant_id="tenant-b", customer_id=other_customer.id, vehicle_id=other_vehicle.id, quote_number=number))
    db.commit()

    assert next_quote_number(store, "tenant-a") == "COT-000001"
    assert next_quote_number(store, "tenant-b") == "COT-000003"


def test_build_quote_items_bidirectional_substring_match():
    catalog = [
        {"id": "s1", "name": "Filtro de óleo", "type": "peca", "sale_price": 30, "cost_price": 10},
        {"id": "s2", "name": "Óleo", "type": "peca", "sale_price": 90, "cost_price": 50},
        {"id": "s3", "name": "", "type": "peca", "sale_price": 1, "cost_price": 1},
    ]

    items = build_quote_items(catalog, ["filtro", "Troca de óleo 5w30", ""], "notas")

    # "filtro" está contido em "Filtro de óleo"; "óleo" está contido na sugestão
    assert [item["service_item_id"] for item in items] == ["s1", "s2"]
    assert items[1]["unit_price"] == 90.0


def test_service_date_uses_workshop_local_date(store, workshop, db):
    customer, vehicle, _ = workshop
    # 01:30 UTC do dia 16 ainda é noite do dia 15 em São Paulo
    late_evening = datetime(2026, 3, 16, 1, 30, tzinfo=timezone.utc)

    result = _executor(store, late_evening).execute(
        "create_quote_from_diagnostic", _quote_args(customer, vehicle, ["Troca de óleo"]), "tenant-a"
    )

    quote = db.query(Quote).filter(Quote.id == result["created"]["id"]).first()
    assert quote.service_date == date(2026, 3, 15)


def test_local_date_treats_naive_datetimes_as_utc():
    assert local_date(datetime(2026, 3, 16, 1, 30)) == date(2026, 3, 15)
    assert local_date(datetime(2026, 3, 16, 1, 30), tz_name="UTC") == date(2026, 3, 16)
