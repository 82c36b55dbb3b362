from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func

from app.core.database import Base, generate_uuid


class QuoteItem(Base):
    __tablename__ = "quote_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    quote_id = Column(String(36), ForeignKey("quotes.id"), nullable=False, index=True)
    # Nulo = item livre, fora do catálogo (preço definido depois pelo mecânico)
    service_item_id = Column(String(36), ForeignKey("service_items.id"), nullable=True)
    service_item_name = Column(String(150), nullable=False)
    service_item_type = Column(String(20), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    cost_price = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    total = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    created_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
