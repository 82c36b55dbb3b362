from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from app.ai import diagnostics
from app.core.config import APP_TIMEZONE
from app.models.quote import QUOTE_STATUSES
from app.models.service_item import SERVICE_ITEM_TYPES
from app.services.store import (
    DataStore,
    OrderBy,
    StoreConflictError,
    StoreError,
    contains,
    eq,
    gte,
    lt,
    newest_first,
)

logger = logging.getLogger(__name__)

CUSTOMERS_PAGE_SIZE = 50
VEHICLES_PAGE_SIZE = 80
QUOTES_PAGE_SIZE = 100
SERVICE_ITEMS_PAGE_SIZE = 200
SUPPLIERS_PAGE_SIZE = 50
VEHICLE_HISTORY_SIZE = 20
PLACEHOLDER_NOTES_CHARS = 80
QUOTE_NUMBER_ATTEMPTS = 3


@dataclass(frozen=True)
class ToolContext:
    store: DataStore
    tenant_id: str
    now: datetime


def _text(args: dict[str, Any], key: str) -> str | None:
    value = args.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _int_or_none(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _number_or_none(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _format_brl(value: float | int | None) -> str:
    formatted = f"{float(value or 0):,.2f}"
    return f"R$ {formatted}".replace(",", "X").replace(".", ",").replace("X", ".")


def _owned(ctx: ToolContext, table: str, row_id: str, columns: tuple[str, ...] = ("id",)) -> dict[str, Any] | None:
    return ctx.store.first(table, [eq("id", row_id), eq("tenant_id", ctx.tenant_id)], columns=columns)


def local_date(now: datetime, tz_name: str = APP_TIMEZONE) -> date:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def _month_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
    if now.month == 12:
        end = datetime(now.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(now.year, now.month + 1, 1, tzinfo=timezone.utc)
    return start, end


# =========================
# CLIENTES / VEÍCULOS
# =========================
def list_customers(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    filters = [eq("tenant_id", ctx.tenant_id)]
    search_name = _text(args, "search_name")
    if search_name:
        filters.append(contains("name", search_name))
    rows = ctx.store.select(
        "customers",
        filters,
        columns=("id", "name", "phone", "email"),
        order_by=newest_first(),
        limit=CUSTOMERS_PAGE_SIZE,
    )
    return {"customers": rows}


def create_customer(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    name = _text(args, "name")
    phone = _text(args, "phone")
    if not name or not phone:
        return {"error": "name and phone are required"}

    created = ctx.store.insert(
        "customers",
        {
            "tenant_id": ctx.tenant_id,
            "name": name,
            "phone": phone,
            "email": _text(args, "email"),
            "address": _text(args, "address"),
            "cpf_cnpj": _text(args, "cpf_cnpj"),
            "notes": _text(args, "notes"),
        },
        columns=("id", "name", "phone"),
    )
    return {"created": created, "message": f"Cliente {created['name']} cadastrado com sucesso."}


def list_vehicles(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    filters = [eq("tenant_id", ctx.tenant_id)]
    customer_id = _text(args, "customer_id")
    plate = _text(args, "license_plate")
    if customer_id:
        filters.append(eq("customer_id", customer_id))
    if plate:
        filters.append(contains("license_plate", plate))
    rows = ctx.store.select(
        "vehicles",
        filters,
        columns=("id", "license_plate", "brand", "model", "year", "customer_id", "current_mileage"),
        order_by=newest_first(),
        limit=VEHICLES_PAGE_SIZE,
    )
    return {"vehicles": rows}


def create_vehicle(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    customer_id = _text(args, "customer_id")
    plate = _text(args, "license_plate")
    brand = _text(args, "brand")
    model = _text(args, "model")
    if not customer_id or not plate or not brand or not model:
        return {"error": "customer_id, license_plate, brand and model are required"}
    if _owned(ctx, "customers", customer_id) is None:
        return {"error": "customer not found"}

    created = ctx.store.insert(
        "vehicles",
        {
            "tenant_id": ctx.tenant_id,
            "customer_id": customer_id,
            "license_plate": plate.upper(),
            "brand": brand,
            "model": model,
            "year": _int_or_none(args.get("year")),
            "color": _text(args, "color"),
            "current_mileage": _int_or_none(args.get("current_mileage")) or 0,
            "notes": _text(args, "notes"),
        },
        columns=("id", "license_plate", "brand", "model"),
    )
    return {
        "created": created,
        "message": f"Veículo {created['brand']} {created['model']} - {created['license_plate']} cadastrado.",
    }


def get_vehicle_history(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    vehicle_id = _text(args, "vehicle_id")
    if not vehicle_id:
        return {"error": "vehicle_id required"}
    vehicle = _owned(ctx, "vehicles", vehicle_id, ("id", "brand", "model", "license_plate", "current_mileage"))
    if vehicle is None:
        return {"error": "vehicle not found"}

    quotes = ctx.store.select(
        "quotes",
        [eq("tenant_id", ctx.tenant_id), eq("vehicle_id", vehicle_id)],
        columns=("id", "quote_number", "status", "total", "service_date", "vehicle_mileage"),
        order_by=OrderBy("service_date", descending=True),
        limit=VEHICLE_HISTORY_SIZE,
    )
    return {"vehicle": vehicle, "quotes": quotes}


# =========================
# COTAÇÕES / DASHBOARD
# =========================
def list_quotes(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    filters = [eq("tenant_id", ctx.tenant_id)]
    status = _text(args, "status")
    if status:
        filters.append(eq("status", status))
    rows = ctx.store.select(
        "quotes",
        filters,
        columns=("id", "quote_number", "status", "total", "service_date", "customer_id", "vehicle_id"),
        order_by=newest_first(),
        limit=QUOTES_PAGE_SIZE,
    )
    return {"quotes": rows}


def get_dashboard_stats(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    start, end = _month_bounds(ctx.now)
    completed = ctx.store.select(
        "quotes",
        [
            eq("tenant_id", ctx.tenant_id),
            eq("status", "concluida"),
            gte("created_date", start),
            lt("created_date", end),
        ],
        columns=("amount_paid", "amount_pending"),
    )
    revenue = sum(float(row["amount_paid"] or 0) for row in completed)
    pending = sum(float(row["amount_pending"] or 0) for row in completed)

    stats: dict[str, Any] = {
        "month": start.strftime("%Y-%m"),
        "revenue_this_month": round(revenue, 2),
        "pending_payment": round(pending, 2),
    }
    for status in QUOTE_STATUSES:
        stats[f"quotes_{status}"] = ctx.store.count("quotes", [eq("tenant_id", ctx.tenant_id), eq("status", status)])
    return stats


# =========================
# COTAÇÃO A PARTIR DO DIAGNÓSTICO
# =========================
def next_quote_number(store: DataStore, tenant_id: str, offset: int = 0) -> str:
    sequence = store.count("quotes", [eq("tenant_id", tenant_id)]) + 1 + offset
    return f"COT-{sequence:06d}"


def _match_catalog_item(
    catalog: list[dict[str, Any]],
    suggestion: str,
    used: set[str],
) -> tuple[dict[str, Any] | None, bool]:
    """Retorna (item, já_usado). Match bidirecional por substring, sem acento-folding."""
    wanted = suggestion.lower()
    already_used = False
    for item in catalog:
        name = str(item.get("name") or "").strip().lower()
        if not name:
            continue
        if name in wanted or wanted in name:
            if item["id"] in used:
                already_used = True
                continue
            return item, False
    return None, already_used


def build_quote_items(
    catalog: list[dict[str, Any]],
    suggested_items: list[Any],
    diagnostic_notes: str,
) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    used: set[str] = set()

    for raw in suggested_items:
        suggestion = str(raw or "").strip()
        if not suggestion:
            continue
        match, duplicate = _match_catalog_item(catalog, suggestion, used)
        if match is not None:
            used.add(match["id"])
            unit_price = float(match.get("sale_price") or 0)
            items.append(
                {
                    "service_item_id": match["id"],
                    "service_item_name": match["name"],
                    "service_item_type": match.get("type"),
                    "quantity": 1,
                    "unit_price": unit_price,
                    "cost_price": float(match.get("cost_price") or 0),
                    "total": unit_price,
                }
            )
        elif not duplicate:
            items.append(
                {
                    "service_item_id": None,
                    "service_item_name": suggestion,
                    "service_item_type": None,
                    "quantity": 1,
                    "unit_price": 0.0,
                    "cost_price": 0.0,
                    "total": 0.0,
                }
            )

    if not items:
        items.append(
            {
                "service_item_id": None,
                "service_item_name": diagnostic_notes.strip()[:PLACEHOLDER_NOTES_CHARS],
                "service_item_type": None,
                "quantity": 1,
                "unit_price": 0.0,
                "cost_price": 0.0,
                "total": 0.0,
            }
        )
    return items


def create_quote_from_diagnostic(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    customer_id = _text(args, "customer_id")
    vehicle_id = _text(args, "vehicle_id")
    notes = _text(args, "diagnostic_notes")
    suggested_items = args.get("suggested_items")
    if not customer_id or not vehicle_id or not notes or not isinstance(suggested_items, list):
        return {"error": "customer_id, vehicle_id, diagnostic_notes and suggested_items (array) are required"}

    if _owned(ctx, "customers", customer_id) is None:
        return {"error": "customer not found"}
    vehicle = _owned(ctx, "vehicles", vehicle_id, ("id", "customer_id"))
    if vehicle is None:
        return {"error": "vehicle not found"}
    if vehicle["customer_id"] != customer_id:
        return {"error": "vehicle does not belong to customer"}

    catalog = ctx.store.select(
        "service_items",
        [eq("tenant_id", ctx.tenant_id), eq("is_active", True)],
        columns=("id", "name", "type", "sale_price", "cost_price"),
        order_by=OrderBy("name"),
    )
    items = build_quote_items(catalog, suggested_items, notes)
    subtotal = round(sum(item["unit_price"] * item["quantity"] for item in items), 2)
    total = subtotal

    quote = None
    for attempt in range(QUOTE_NUMBER_ATTEMPTS):
        quote_number = next_quote_number(ctx.store, ctx.tenant_id, offset=attempt)
        try:
            with ctx.store.atomic():
                quote = ctx.store.insert(
                    "quotes",
                    {
                        "tenant_id": ctx.tenant_id,
                        "customer_id": customer_id,
                        "vehicle_id": vehicle_id,
                        "quote_number": quote_number,
                        "status": "em_analise",
                        "service_date": local_date(ctx.now),
                        "vehicle_mileage": _int_or_none(args.get("vehicle_mileage")) or 0,
                        "subtotal": subtotal,
                        "discount_percent": 0,
                        "discount_amount": 0,
                        "total": total,
                        "amount_paid": 0,
                        "amount_pending": total,
                        "payment_status": "pendente",
                        "notes": notes,
                    },
                    columns=("id", "quote_number", "total"),
                )
                for item in items:
                    ctx.store.insert(
                        "quote_items",
                        {"tenant_id": ctx.tenant_id, "quote_id": quote["id"], **item},
                        columns=("id",),
                    )
        except StoreConflictError:
            logger.warning("quote number collision tenant_id=%s number=%s", ctx.tenant_id, quote_number)
            quote = None
            continue
        except StoreError:
            logger.exception("quote creation rolled back tenant_id=%s items=%s", ctx.tenant_id, len(items))
            return {"error": "quote could not be created"}
        break

    if quote is None:
        return {"error": "quote number could not be allocated, try again"}

    unpriced = sum(1 for item in items if item["service_item_id"] is None)
    message = (
        f"Cotação {quote['quote_number']} criada com {len(items)} item(ns). "
        f"Total estimado {_format_brl(quote['total'])}."
    )
    if unpriced:
        message += f" {unpriced} item(ns) fora do catálogo entraram sem preço para revisão."
    message += " O mecânico pode revisar na tela de Cotações."

    return {
        "created": {"id": quote["id"], "quote_number": quote["quote_number"], "total": quote["total"]},
        "message": message,
    }


# =========================
# CATÁLOGO / DIAGNÓSTICO
# =========================
def list_service_items(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    filters = [eq("tenant_id", ctx.tenant_id), eq("is_active", True)]
    type_filter = _text(args, "type_filter")
    if type_filter:
        filters.append(eq("type", type_filter.lower()))
    rows = ctx.store.select(
        "service_items",
        filters,
        columns=("id", "name", "type", "sale_price", "cost_price"),
        order_by=OrderBy("name"),
        limit=SERVICE_ITEMS_PAGE_SIZE,
    )
    return {"service_items": rows}


def create_service_item(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    name = _text(args, "name")
    item_type = _text(args, "type")
    if not name or not item_type:
        return {"error": "name and type (produto, peca or servico) are required"}
    item_type = item_type.lower() if item_type.lower() in SERVICE_ITEM_TYPES else "servico"

    sale_price = _number_or_none(args.get("sale_price"))
    if sale_price is None or sale_price < 0:
        return {"error": "sale_price must be a non-negative number"}
    cost_price = _number_or_none(args.get("cost_price")) or 0.0

    candidates = ctx.store.select(
        "service_items",
        [eq("tenant_id", ctx.tenant_id), contains("name", name)],
        columns=("id", "name"),
    )
    existing = next((row for row in candidates if row["name"].strip().lower() == name.lower()), None)
    if existing is not None:
        return {
            "error": "already_exists",
            "message": f'Item "{existing["name"]}" já está cadastrado no catálogo. Não foi criado duplicado.',
        }

    supplier_id = None
    raw_supplier_id = _text(args, "supplier_id")
    supplier_name = _text(args, "supplier_name")
    if raw_supplier_id and _owned(ctx, "suppliers", raw_supplier_id) is not None:
        supplier_id = raw_supplier_id
    elif supplier_name:
        supplier = ctx.store.first(
            "suppliers",
            [eq("tenant_id", ctx.tenant_id), contains("name", supplier_name)],
            columns=("id",),
        )
        if supplier is not None:
            supplier_id = supplier["id"]

    created = ctx.store.insert(
        "service_items",
        {
            "tenant_id": ctx.tenant_id,
            "name": name,
            "type": item_type,
            "sale_price": sale_price,
            "cost_price": cost_price,
            "supplier_id": supplier_id,
            "current_stock": max(0, _int_or_none(args.get("current_stock")) or 0),
            "minimum_stock": max(0, _int_or_none(args.get("minimum_stock")) or 0),
            "is_active": True,
        },
        columns=("id", "name", "type", "sale_price", "supplier_id"),
    )
    supplier_note = " (fornecedor vinculado)" if supplier_id else ""
    return {
        "created": created,
        "message": (
            f'Item "{created["name"]}" ({item_type}) cadastrado no catálogo com preço '
            f"{_format_brl(created['sale_price'])}{supplier_note}."
        ),
    }


def get_diagnostic_suggestions(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    return diagnostics.lookup(_text(args, "symptom") or "")


# =========================
# LEMBRETES / FORNECEDORES
# =========================
def create_maintenance_reminder(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    customer_id = _text(args, "customer_id")
    vehicle_id = _text(args, "vehicle_id")
    service_name = _text(args, "service_name")
    reminder_type = _text(args, "reminder_type")
    if not customer_id or not vehicle_id or not service_name or not reminder_type:
        return {"error": "customer_id, vehicle_id, service_name and reminder_type required"}

    target_date = None
    raw_date = _text(args, "target_date")
    if raw_date:
        try:
            target_date = date.fromisoformat(raw_date[:10])
        except ValueError:
            return {"error": "target_date must be YYYY-MM-DD"}

    if _owned(ctx, "customers", customer_id) is None:
        return {"error": "customer not found"}
    if _owned(ctx, "vehicles", vehicle_id) is None:
        return {"error": "vehicle not found"}

    created = ctx.store.insert(
        "maintenance_reminders",
        {
            "tenant_id": ctx.tenant_id,
            "customer_id": customer_id,
            "vehicle_id": vehicle_id,
            "service_name": service_name,
            "reminder_type": reminder_type,
            "target_date": target_date,
            "target_mileage": _int_or_none(args.get("target_mileage")),
            "whatsapp_message": _text(args, "whatsapp_message"),
            "status": "pendente",
        },
        columns=("id", "service_name", "target_date", "target_mileage"),
    )
    return {"created": created, "message": "Lembrete de manutenção criado."}


def list_suppliers(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    rows = ctx.store.select(
        "suppliers",
        [eq("tenant_id", ctx.tenant_id)],
        columns=("id", "name", "phone", "email"),
        order_by=OrderBy("name"),
        limit=SUPPLIERS_PAGE_SIZE,
    )
    return {"suppliers": rows}


def create_supplier(ctx: ToolContext, args: dict[str, Any]) -> dict[str, Any]:
    name = _text(args, "name")
    if not name:
        return {"error": "name is required"}
    created = ctx.store.insert(
        "suppliers",
        {
            "tenant_id": ctx.tenant_id,
            "name": name,
            "contact_name": _text(args, "contact_name"),
            "phone": _text(args, "phone"),
            "email": _text(args, "email"),
            "address": _text(args, "address"),
            "cnpj": _text(args, "cnpj"),
            "notes": _text(args, "notes"),
        },
        columns=("id", "name"),
    )
    return {"created": created, "message": f"Fornecedor {created['name']} cadastrado."}
