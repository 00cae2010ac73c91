from fastapi import APIRouter

from ledgerbook.app.api.v1.endpoints import accounts, companies, journal, reports

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(companies.router, prefix="/companies", tags=["companies"])
api_router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
api_router.include_router(journal.router, prefix="/journal", tags=["journal"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
