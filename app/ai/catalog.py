from __future__ import annotations

from typing import Any

CATALOG_VERSION = "2"


def _tool(name: str, description: str, properties: dict[str, Any] | None = None, required: list[str] | None = None) -> dict[str, Any]:
    parameters: dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        parameters["required"] = required
    return {
        "type": "function",
        "function": {"name": name, "description": description, "parameters": parameters},
    }


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    _tool(
        "list_customers",
        "Lista clientes da oficina. Use para verificar se cliente já existe ou listar por nome.",
        {"search_name": {"type": "string", "description": "Nome ou parte do nome para filtrar (opcional)"}},
    ),
    _tool(
        "create_customer",
        "Cadastra um novo cliente. Use quando o usuário pedir cadastro de cliente e tiver nome e telefone no mínimo.",
        {
            "name": {"type": "string", "description": "Nome completo do cliente"},
            "phone": {"type": "string", "description": "Telefone"},
            "email": {"type": "string", "description": "E-mail (opcional)"},
            "address": {"type": "string", "description": "Endereço (opcional)"},
            "cpf_cnpj": {"type": "string", "description": "CPF ou CNPJ (opcional)"},
            "notes": {"type": "string", "description": "Observações (opcional)"},
        },
        ["name", "phone"],
    ),
    _tool(
        "list_vehicles",
        "Lista veículos. Pode filtrar por customer_id ou license_plate.",
        {
            "customer_id": {"type": "string", "description": "UUID do cliente (opcional)"},
            "license_plate": {"type": "string", "description": "Placa ou parte (opcional)"},
        },
    ),
    _tool(
        "create_vehicle",
        "Cadastra um novo veículo. Cliente (customer_id) deve já existir.",
        {
            "customer_id": {"type": "string", "description": "UUID do cliente dono do veículo"},
            "license_plate": {"type": "string", "description": "Placa"},
            "brand": {"type": "string", "description": "Marca"},
            "model": {"type": "string", "description": "Modelo"},
            "year": {"type": "integer", "description": "Ano (opcional)"},
            "color": {"type": "string", "description": "Cor (opcional)"},
            "current_mileage": {"type": "integer", "description": "Quilometragem atual (opcional)"},
            "notes": {"type": "string", "description": "Observações (opcional)"},
        },
        ["customer_id", "license_plate", "brand", "model"],
    ),
    _tool(
        "list_quotes",
        "Lista cotações. Filtre por status: em_analise, aprovada, recusada, concluida.",
        {"status": {"type": "string", "description": "em_analise, aprovada, recusada ou concluida (opcional)"}},
    ),
    _tool(
        "create_quote_from_diagnostic",
        "Cria uma cotação com itens sugeridos pelo diagnóstico. Gera número automático e itens a partir "
        "de peças/serviços sugeridos e do catálogo da oficina; itens fora do catálogo entram com preço zero "
        "para revisão do mecânico.",
        {
            "customer_id": {"type": "string", "description": "UUID do cliente"},
            "vehicle_id": {"type": "string", "description": "UUID do veículo"},
            "vehicle_mileage": {"type": "integer", "description": "Quilometragem atual (opcional)"},
            "diagnostic_notes": {"type": "string", "description": "Resumo do diagnóstico/sintoma"},
            "suggested_items": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Nomes de peças/serviços sugeridos (ex: Filtro de óleo, Troca de óleo)",
            },
        },
        ["customer_id", "vehicle_id", "diagnostic_notes", "suggested_items"],
    ),
    _tool(
        "list_service_items",
        "Lista itens do catálogo (peças, serviços, produtos) para montar orçamento ou sugerir itens.",
        {"type_filter": {"type": "string", "description": "peca, servico ou produto (opcional)"}},
    ),
    _tool(
        "get_dashboard_stats",
        "Retorna resumo financeiro e operacional: faturamento do mês, a receber, cotações em análise, concluídas, etc.",
    ),
    _tool(
        "get_vehicle_history",
        "Histórico do veículo: cotações, serviços realizados, quilometragem. Use para sugerir revisão geral.",
        {"vehicle_id": {"type": "string", "description": "UUID do veículo"}},
        ["vehicle_id"],
    ),
    _tool(
        "get_diagnostic_suggestions",
        "Dado um sintoma (ex: carro falhando, engasgando, aquecendo), retorna causas prováveis, "
        "peças e serviços sugeridos e tempo estimado.",
        {"symptom": {"type": "string", "description": "Descrição do sintoma ou problema relatado"}},
        ["symptom"],
    ),
    _tool(
        "create_maintenance_reminder",
        "Cria lembrete de manutenção para cliente/veículo (revisão, troca de óleo, etc.).",
        {
            "customer_id": {"type": "string"},
            "vehicle_id": {"type": "string"},
            "service_name": {"type": "string"},
            "reminder_type": {"type": "string", "enum": ["tempo", "quilometragem", "ambos"]},
            "target_date": {"type": "string", "description": "Data alvo (YYYY-MM-DD) se tipo tempo"},
            "target_mileage": {"type": "integer", "description": "KM alvo se tipo quilometragem"},
            "whatsapp_message": {"type": "string", "description": "Mensagem sugerida para WhatsApp (opcional)"},
        },
        ["customer_id", "vehicle_id", "service_name", "reminder_type"],
    ),
    _tool(
        "list_suppliers",
        "Lista fornecedores. Use quando usuário perguntar sobre fornecedores ou cadastrar um.",
    ),
    _tool(
        "create_supplier",
        "Cadastra novo fornecedor. Peça apenas dados faltantes.",
        {
            "name": {"type": "string"},
            "contact_name": {"type": "string"},
            "phone": {"type": "string"},
            "email": {"type": "string"},
            "address": {"type": "string"},
            "cnpj": {"type": "string"},
            "notes": {"type": "string"},
        },
        ["name"],
    ),
    _tool(
        "create_service_item",
        "Cadastra item no catálogo: produto, peça ou serviço. Pode vincular fornecedor pelo nome "
        "(supplier_name) ou UUID (supplier_id). Não duplica: se já existir item com o mesmo nome, retorna aviso.",
        {
            "name": {"type": "string", "description": "Nome do item (ex: Óleo 5W30, Troca de Óleo, Jogo de Velas)"},
            "type": {"type": "string", "enum": ["produto", "peca", "servico"], "description": "Tipo: produto, peca ou servico"},
            "sale_price": {"type": "number", "description": "Preço de venda"},
            "cost_price": {"type": "number", "description": "Preço de custo (pode ser 0 para serviço)"},
            "supplier_id": {"type": "string", "description": "UUID do fornecedor (opcional)"},
            "supplier_name": {"type": "string", "description": "Nome do fornecedor para vincular (opcional)"},
            "current_stock": {"type": "integer", "description": "Estoque atual (opcional, default 0)"},
            "minimum_stock": {"type": "integer", "description": "Estoque mínimo (opcional, default 0)"},
        },
        ["name", "type", "sale_price"],
    ),
]

TOOL_NAMES: tuple[str, ...] = tuple(tool["function"]["name"] for tool in TOOL_DEFINITIONS)
