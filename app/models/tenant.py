from sqlalchemy import Column, DateTime, Integer, String, func

from app.core.database import Base, generate_uuid


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(150), nullable=False, default="Oficina")
    created_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Créditos do assistente. Limite nulo = uso ilimitado.
    ai_credits_limit = Column(Integer, nullable=True)
    ai_credits_used_this_month = Column(Integer, nullable=False, default=0)
    ai_credits_reset_at = Column(DateTime(timezone=True), nullable=True)
