from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None


def _money() -> sa.Numeric:
    return sa.Numeric(12, 2, asdecimal=False)


def _created_date() -> sa.Column:
    return sa.Column("created_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _tenant_fk() -> sa.Column:
    return sa.Column("tenant_id", sa.String(length=36), sa.ForeignKey("tenants.id"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        _created_date(),
        sa.Column("ai_credits_limit", sa.Integer(), nullable=True),
        sa.Column("ai_credits_used_this_month", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ai_credits_reset_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=36), sa.ForeignKey("tenants.id"), nullable=True),
        sa.Column("full_name", sa.String(length=150), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=30), nullable=False, server_default="user"),
        _created_date(),
    )
    op.create_index("ix_profiles_tenant_id", "profiles", ["tenant_id"], unique=False)

    op.create_table(
        "customers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("cpf_cnpj", sa.String(length=20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_date(),
    )
    op.create_index("ix_customers_tenant_id", "customers", ["tenant_id"], unique=False)
    op.create_index("ix_customers_phone", "customers", ["phone"], unique=False)

    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column("customer_id", sa.String(length=36), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("license_plate", sa.String(length=10), nullable=False),
        sa.Column("brand", sa.String(length=60), nullable=False),
        sa.Column("model", sa.String(length=80), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("color", sa.String(length=40), nullable=True),
        sa.Column("current_mileage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_date(),
    )
    op.create_index("ix_vehicles_tenant_id", "vehicles", ["tenant_id"], unique=False)
    op.create_index("ix_vehicles_customer_id", "vehicles", ["customer_id"], unique=False)
    op.create_index("ix_vehicles_license_plate", "vehicles", ["license_plate"], unique=False)

    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("contact_name", sa.String(length=150), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("cnpj", sa.String(length=20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_date(),
    )
    op.create_index("ix_suppliers_tenant_id", "suppliers", ["tenant_id"], unique=False)

    op.create_table(
        "service_items",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column("supplier_id", sa.String(length=36), sa.ForeignKey("suppliers.id"), nullable=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="servico"),
        sa.Column("sale_price", _money(), nullable=False, server_default="0"),
        sa.Column("cost_price", _money(), nullable=False, server_default="0"),
        sa.Column("current_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("minimum_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_date(),
    )
    op.create_index("ix_service_items_tenant_id", "service_items", ["tenant_id"], unique=False)

    op.create_table(
        "quotes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column("customer_id", sa.String(length=36), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("vehicle_id", sa.String(length=36), sa.ForeignKey("vehicles.id"), nullable=False),
        sa.Column("quote_number", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="em_analise"),
        sa.Column("service_date", sa.Date(), nullable=True),
        sa.Column("vehicle_mileage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subtotal", _money(), nullable=False, server_default="0"),
        sa.Column("discount_percent", sa.Numeric(5, 2, asdecimal=False), nullable=False, server_default="0"),
        sa.Column("discount_amount", _money(), nullable=False, server_default="0"),
        sa.Column("total", _money(), nullable=False, server_default="0"),
        sa.Column("amount_paid", _money(), nullable=False, server_default="0"),
        sa.Column("amount_pending", _money(), nullable=False, server_default="0"),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pendente"),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_date(),
        sa.UniqueConstraint("tenant_id", "quote_number", name="uq_quotes_tenant_number"),
    )
    op.create_index("ix_quotes_tenant_id", "quotes", ["tenant_id"], unique=False)
    op.create_index("ix_quotes_customer_id", "quotes", ["customer_id"], unique=False)
    op.create_index("ix_quotes_vehicle_id", "quotes", ["vehicle_id"], unique=False)

    op.create_table(
        "quote_items",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column("quote_id", sa.String(length=36), sa.ForeignKey("quotes.id"), nullable=False),
        sa.Column("service_item_id", sa.String(length=36), sa.ForeignKey("service_items.id"), nullable=True),
        sa.Column("service_item_name", sa.String(length=150), nullable=False),
        sa.Column("service_item_type", sa.String(length=20), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("unit_price", _money(), nullable=False, server_default="0"),
        sa.Column("cost_price", _money(), nullable=False, server_default="0"),
        sa.Column("total", _money(), nullable=False, server_default="0"),
        _created_date(),
    )
    op.create_index("ix_quote_items_tenant_id", "quote_items", ["tenant_id"], unique=False)
    op.create_index("ix_quote_items_quote_id", "quote_items", ["quote_id"], unique=False)

    op.create_table(
        "maintenance_reminders",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column("customer_id", sa.String(length=36), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("vehicle_id", sa.String(length=36), sa.ForeignKey("vehicles.id"), nullable=False),
        sa.Column("service_name", sa.String(length=150), nullable=False),
        sa.Column("reminder_type", sa.String(length=20), nullable=False),
        sa.Column("target_date", sa.Date(), nullable=True),
        sa.Column("target_mileage", sa.Integer(), nullable=True),
        sa.Column("whatsapp_message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pendente"),
        _created_date(),
    )
    op.create_index("ix_maintenance_reminders_tenant_id", "maintenance_reminders", ["tenant_id"], unique=False)


def downgrade() -> None:
    for table in (
        "maintenance_reminders",
        "quote_items",
        "quotes",
        "service_items",
        "suppliers",
        "vehicles",
        "customers",
        "profiles",
        "tenants",
    ):
        op.drop_table(table)
