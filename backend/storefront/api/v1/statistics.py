"""
Storefront statistics endpoint for the home page.
"""

from fastapi import APIRouter

from storefront.api.deps import DatabaseSession
from storefront.schemas.statistics import StatisticsEnvelope
from storefront.services.statistics.service import StatisticsService

router = APIRouter(prefix="/statistics", tags=["Statistics"])


@router.get("", response_model=StatisticsEnvelope, summary="Storefront statistics")
async def get_statistics(db: DatabaseSession) -> StatisticsEnvelope:
    return StatisticsEnvelope(data=await StatisticsService(db).get_statistics())
