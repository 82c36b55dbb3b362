"""Conjunto de dados reutilizável para cenários de teste backend."""

TENANT_A = {"id": "tenant-a", "name": "Oficina Alfa", "ai_credits_limit": None}
TENANT_B = {"id": "tenant-b", "name": "Oficina Beta", "ai_credits_limit": None}

CUSTOMER_MARIA = {"name": "Maria", "phone": "11999999999"}

CATALOG_ITEMS = [
    {"name": "Troca de óleo", "type": "servico", "sale_price": 150.0, "cost_price": 60.0},
    {"name": "Filtro de ar", "type": "peca", "sale_price": 45.5, "cost_price": 20.0},
    {"name": "Velas de ignição", "type": "peca", "sale_price": 120.0, "cost_price": 70.0},
    {"name": "Alinhamento", "type": "servico", "sale_price": 80.0, "cost_price": 0.0, "is_active": False},
]

FIXED_NOW_ISO = "2026-03-15T12:00:00+00:00"
