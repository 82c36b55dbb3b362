from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base, generate_uuid


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    license_plate = Column(String(10), nullable=False, index=True)
    brand = Column(String(60), nullable=False)
    model = Column(String(80), nullable=False)
    year = Column(Integer, nullable=True)
    color = Column(String(40), nullable=True)
    current_mileage = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
