"""Dashboard router."""
from fastapi import APIRouter
from unifypay.routers import envelope
from unifypay.services.dashboard import DashboardAggregator
from unifypay.storage.database import get_db

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("")
async def get_dashboard():
    """Current-month summary, latest activity and all-time counts."""
    return envelope(DashboardAggregator(*get_db()).build())
