"""Manual tier tick endpoints."""
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request

from ..schemas.tier import TickSummaryResponse
from ..services.scheduler import SchedulerService, UnknownTier

router = APIRouter(prefix="/api/tiers", tags=["tiers"])


def get_scheduler_service(request: Request) -> SchedulerService:
    service = getattr(request.app.state, "scheduler_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Check engine not running")
    return service


@router.get("")
async def list_tiers(service: SchedulerService = Depends(get_scheduler_service)):
    """Tier periods in minutes."""
    return {"tiers": service.known_tiers()}


@router.post("/{minutes}/run", response_model=TickSummaryResponse)
async def run_tier(minutes: int, service: SchedulerService = Depends(get_scheduler_service)):
    """Run one tier's tick now and wait for it to finish."""
    try:
        summary = await service.run_tier_now(minutes)
    except UnknownTier as e:
        raise HTTPException(status_code=404, detail=str(e))
    return TickSummaryResponse(**asdict(summary))
