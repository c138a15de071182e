from fastapi import APIRouter

from litsheet.api.v1.endpoints import sheets

api_router = APIRouter()

api_router.include_router(sheets.router, prefix="/sheets", tags=["Sheets"])

__all__ = ["api_router"]
