from fastapi import APIRouter
from app.api.v1 import (
    admin_stock,
    appointments,
    auth,
    catalog,
    consultations,
    franchises,
    locations,
    medicine_bills,
    packages,
    patients,
    receipts,
    reports,
    sales,
    stock,
    teams,
    transports,
    uploads,
    users,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(locations.states_router, prefix="/states", tags=["masters"])
api_router.include_router(locations.cities_router, prefix="/cities", tags=["masters"])
api_router.include_router(catalog.brands_router, prefix="/brands", tags=["masters"])
api_router.include_router(catalog.medicines_router, prefix="/medicines", tags=["masters"])
api_router.include_router(catalog.services_router, prefix="/services", tags=["masters"])
api_router.include_router(catalog.labs_router, prefix="/labs", tags=["masters"])
api_router.include_router(packages.router, prefix="/packages", tags=["packages"])
api_router.include_router(franchises.router, prefix="/franchises", tags=["franchises"])
api_router.include_router(teams.router, prefix="/teams", tags=["teams"])
api_router.include_router(teams.rooms_router, prefix="/rooms", tags=["rooms"])
api_router.include_router(patients.router, prefix="/patients", tags=["patients"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
api_router.include_router(consultations.router, prefix="/consultations", tags=["consultations"])
api_router.include_router(
    receipts.consultation_receipts_router, prefix="/consultation-receipts", tags=["receipts"]
)
api_router.include_router(
    receipts.medicine_bill_receipts_router, prefix="/medicine-bill-receipts", tags=["receipts"]
)
api_router.include_router(medicine_bills.router, prefix="/medicine-bills", tags=["medicine-bills"])
api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
api_router.include_router(transports.router, prefix="/transports", tags=["transports"])
api_router.include_router(stock.router, prefix="/stocks", tags=["stock"])
api_router.include_router(stock.recalls_router, prefix="/recalls", tags=["stock"])
api_router.include_router(admin_stock.router, prefix="/admin-stocks", tags=["admin-stock"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(uploads.router, prefix="/uploads", tags=["uploads"])
