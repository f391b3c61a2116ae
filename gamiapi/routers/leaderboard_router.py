from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path, Query

from gamiapi.containers import Container
from gamiapi.schemas.ledger import LeaderboardRankResponse, LeaderboardResponse
from gamiapi.services.ledger_service import LedgerService

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse)
@inject
async def get_leaderboard(
    limit: int = Query(10, ge=1, le=100, description="조회 인원"),
    offset: int = Query(0, ge=0, description="오프셋"),
    ledger_service: LedgerService = Depends(Provide[Container.services.ledger_service]),
) -> LeaderboardResponse:
    """포인트 순 리더보드 (동점은 직원 ID 순)"""
    return ledger_service.get_leaderboard(limit=limit, offset=offset)


@router.get("/{employee_id}", response_model=LeaderboardRankResponse)
@inject
async def get_leaderboard_rank(
    employee_id: int = Path(..., gt=0, description="직원 ID"),
    ledger_service: LedgerService = Depends(Provide[Container.services.ledger_service]),
) -> LeaderboardRankResponse:
    return ledger_service.get_leaderboard_rank(employee_id)
