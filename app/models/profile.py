from sqlalchemy import Column, DateTime, ForeignKey, String, func

from app.core.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    # Mesmo id do usuário no provedor de identidade (claim "sub" do JWT)
    id = Column(String(36), primary_key=True)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=True, index=True)
    full_name = Column(String(150), nullable=True)
    email = Column(String(255), nullable=True)
    role = Column(String(30), nullable=False, default="user")
    created_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
