from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, func

from app.core.database import Base, generate_uuid

QUOTE_STATUSES = ("em_analise", "aprovada", "recusada", "concluida")


class Quote(Base):
    __tablename__ = "quotes"
    __table_args__ = (UniqueConstraint("tenant_id", "quote_number", name="uq_quotes_tenant_number"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    quote_number = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="em_analise")
    service_date = Column(Date, nullable=True)
    vehicle_mileage = Column(Integer, nullable=False, default=0)

    subtotal = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    discount_percent = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    total = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)

    amount_paid = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    amount_pending = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    payment_status = Column(String(20), nullable=False, default="pendente")

    notes = Column(Text, nullable=True)
    created_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
