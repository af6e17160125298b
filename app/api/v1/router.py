from fastapi import APIRouter

from app.api.routers import (
    auth,
    customers,
    invoices,
    payments,
    reminders,
    rentals,
    roles,
    scheduler,
    users,
    vehicles,
)

api_router = APIRouter()

api_router.include_router(roles.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(customers.router)
api_router.include_router(vehicles.router)
api_router.include_router(rentals.router)
api_router.include_router(payments.router)
api_router.include_router(invoices.router)
api_router.include_router(reminders.router)
api_router.include_router(scheduler.router)
