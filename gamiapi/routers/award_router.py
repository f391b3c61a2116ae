"""
지급 API 라우터 - 관리자 수동 지급 및 외부 수집 시스템 연동용

- POST /awards/{employee_id}/points
- POST /awards/{employee_id}/coins
- POST /awards/{employee_id}/productivity
"""

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path

from gamiapi.containers import Container
from gamiapi.schemas.ledger import (
    AwardCoinsRequest,
    AwardPointsRequest,
    AwardProductivityRequest,
    AwardResult,
    CoinAwardResult,
    ProductivityAwardResult,
)
from gamiapi.services.award_service import AwardService

router = APIRouter(prefix="/awards", tags=["awards"])


@router.post("/{employee_id}/points", response_model=AwardResult)
@inject
async def award_points(
    request: AwardPointsRequest,
    employee_id: int = Path(..., gt=0, description="직원 ID"),
    award_service: AwardService = Depends(Provide[Container.services.award_service]),
) -> AwardResult:
    """포인트 지급/차감 - 해금된 업적이 있으면 함께 반환"""
    return award_service.award_points(
        employee_id,
        request.points,
        request.type,
        request.description,
        request.reference,
    )


@router.post("/{employee_id}/coins", response_model=CoinAwardResult)
@inject
async def award_coins(
    request: AwardCoinsRequest,
    employee_id: int = Path(..., gt=0, description="직원 ID"),
    award_service: AwardService = Depends(Provide[Container.services.award_service]),
) -> CoinAwardResult:
    return award_service.award_coins(
        employee_id,
        request.coins,
        request.type,
        request.description,
        request.reference,
    )


@router.post("/{employee_id}/productivity", response_model=ProductivityAwardResult)
@inject
async def award_productivity(
    request: AwardProductivityRequest,
    employee_id: int = Path(..., gt=0, description="직원 ID"),
    award_service: AwardService = Depends(Provide[Container.services.award_service]),
) -> ProductivityAwardResult:
    """생산성 구간별 포인트 지급 (90%+ 15, 75%+ 10, 60%+ 5)"""
    return award_service.award_productivity(
        employee_id, request.productivity_percentage, request.reference
    )
