from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, func

from app.core.database import Base, generate_uuid

SERVICE_ITEM_TYPES = ("servico", "peca", "produto")


class ServiceItem(Base):
    __tablename__ = "service_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    supplier_id = Column(String(36), ForeignKey("suppliers.id"), nullable=True)
    name = Column(String(150), nullable=False)
    type = Column(String(20), nullable=False, default="servico")  # servico / peca / produto
    sale_price = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    cost_price = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    current_stock = Column(Integer, nullable=False, default=0)
    minimum_stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
