"""API V1 Router"""

from fastapi import APIRouter

from app.api.v1.endpoints import fees

# Create API v1 router
api_router = APIRouter()

api_router.include_router(fees.router, prefix="/fees", tags=["Fee Ledger"])
