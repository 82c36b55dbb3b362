from app.models.tenant import Tenant
from app.models.profile import Profile
from app.models.customer import Customer
from app.models.vehicle import Vehicle
from app.models.supplier import Supplier
from app.models.service_item import ServiceItem
from app.models.quote import Quote
from app.models.quote_item import QuoteItem
from app.models.maintenance_reminder import MaintenanceReminder
