from enum import Enum


class CustomerType(str, Enum):
    INDIVIDUAL = "Individual"
    COMPANY = "Company"


class VehicleStatus(str, Enum):
    AVAILABLE = "Available"
    RENTED = "Rented"


# An individual may hold at most this many non-closed rentals at once.
INDIVIDUAL_MAX_OPEN_RENTALS = 1
