from app.db.models.role import Role
from app.db.models.user import User
from app.db.models.customer import Customer
from app.db.models.vehicle import Vehicle
from app.db.models.rental import Rental
from app.db.models.charge import Charge
from app.db.models.payment import Payment
from app.db.models.allocation import Allocation
from app.db.models.reminder import Reminder
from app.db.models.invoice import Invoice

__all__ = [
    "Role",
    "User",
    "Customer",
    "Vehicle",
    "Rental",
    "Charge",
    "Payment",
    "Allocation",
    "Reminder",
    "Invoice",
]
