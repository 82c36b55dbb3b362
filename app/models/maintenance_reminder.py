from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base, generate_uuid

REMINDER_TYPES = ("tempo", "quilometragem", "ambos")


class MaintenanceReminder(Base):
    __tablename__ = "maintenance_reminders"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False)
    service_name = Column(String(150), nullable=False)
    reminder_type = Column(String(20), nullable=False)
    target_date = Column(Date, nullable=True)
    target_mileage = Column(Integer, nullable=True)
    whatsapp_message = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pendente")
    created_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
