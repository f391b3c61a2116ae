"""
리워드 API 라우터

직원용:
- GET /rewards/catalog?employee_id=: 카탈로그 + 교환 가능 여부
- POST /rewards/employees/{employee_id}/redeem: 리워드 교환
- POST /rewards/employees/{employee_id}/cash-out: 코인 현금 전환
- GET /rewards/redemptions?employee_id=&status=: 교환 내역

관리자용:
- POST/PUT/DELETE /rewards/{reward_id}: 카탈로그 관리
- PATCH /rewards/redemptions/{redemption_id}: 교환 상태 변경
"""

from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path, Query

from gamiapi.containers import Container
from gamiapi.models.rewards import RedemptionStatusEnum
from gamiapi.schemas.achievements import DeleteResultResponse
from gamiapi.schemas.rewards import (
    CashConversionRequest,
    CashConversionResponse,
    RedemptionListResponse,
    RedemptionResponse,
    RedemptionResult,
    RedemptionStatusUpdateRequest,
    RewardCatalogResponse,
    RewardCreateRequest,
    RewardRedemptionRequest,
    RewardResponse,
    RewardUpdateRequest,
)
from gamiapi.services.reward_service import RewardService

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("/catalog", response_model=RewardCatalogResponse)
@inject
async def get_reward_catalog(
    employee_id: Optional[int] = Query(None, gt=0, description="교환 가능 여부 기준 직원"),
    active_only: bool = Query(True, description="활성 리워드만 조회"),
    reward_service: RewardService = Depends(Provide[Container.services.reward_service]),
) -> RewardCatalogResponse:
    return reward_service.list_catalog(employee_id=employee_id, active_only=active_only)


@router.get("/redemptions", response_model=RedemptionListResponse)
@inject
async def list_redemptions(
    employee_id: Optional[int] = Query(None, gt=0, description="직원 ID"),
    status: Optional[RedemptionStatusEnum] = Query(None, description="교환 상태"),
    limit: int = Query(50, ge=1, le=200, description="페이지 크기"),
    offset: int = Query(0, ge=0, description="오프셋"),
    reward_service: RewardService = Depends(Provide[Container.services.reward_service]),
) -> RedemptionListResponse:
    return reward_service.list_redemptions(
        employee_id=employee_id,
        status=status.value if status else None,
        limit=limit,
        offset=offset,
    )


@router.patch("/redemptions/{redemption_id}", response_model=RedemptionResponse)
@inject
async def update_redemption_status(
    request: RedemptionStatusUpdateRequest,
    redemption_id: int = Path(..., gt=0, description="교환 ID"),
    reward_service: RewardService = Depends(Provide[Container.services.reward_service]),
) -> RedemptionResponse:
    """교환 상태 변경 (관리자) - 거절 시에도 잔액은 환불되지 않음"""
    return reward_service.update_redemption_status(
        redemption_id, request.status, request.notes
    )


@router.post("/employees/{employee_id}/redeem", response_model=RedemptionResult)
@inject
async def redeem_reward(
    request: RewardRedemptionRequest,
    employee_id: int = Path(..., gt=0, description="직원 ID"),
    reward_service: RewardService = Depends(Provide[Container.services.reward_service]),
) -> RedemptionResult:
    """리워드 교환

    재고 소진은 409(STOCK_001), 잔액 부족은 400(BALANCE_001),
    동시 쓰기 충돌은 409(CONFLICT_001, retryable) 로 응답합니다.
    """
    return reward_service.redeem(employee_id, request.reward_id, request.coin_amount)


@router.post("/employees/{employee_id}/cash-out", response_model=CashConversionResponse)
@inject
async def convert_coins_to_cash(
    request: CashConversionRequest,
    employee_id: int = Path(..., gt=0, description="직원 ID"),
    reward_service: RewardService = Depends(Provide[Container.services.reward_service]),
) -> CashConversionResponse:
    return reward_service.convert_coins_to_cash(employee_id, request.coins)


@router.post("", response_model=RewardResponse, status_code=201)
@inject
async def create_reward(
    request: RewardCreateRequest,
    reward_service: RewardService = Depends(Provide[Container.services.reward_service]),
) -> RewardResponse:
    return reward_service.create_reward(request)


@router.get("/{reward_id}", response_model=RewardResponse)
@inject
async def get_reward(
    reward_id: int = Path(..., gt=0, description="리워드 ID"),
    reward_service: RewardService = Depends(Provide[Container.services.reward_service]),
) -> RewardResponse:
    return reward_service.get_reward(reward_id)


@router.put("/{reward_id}", response_model=RewardResponse)
@inject
async def update_reward(
    request: RewardUpdateRequest,
    reward_id: int = Path(..., gt=0, description="리워드 ID"),
    reward_service: RewardService = Depends(Provide[Container.services.reward_service]),
) -> RewardResponse:
    return reward_service.update_reward(reward_id, request)


@router.delete("/{reward_id}", response_model=DeleteResultResponse)
@inject
async def delete_reward(
    reward_id: int = Path(..., gt=0, description="리워드 ID"),
    reward_service: RewardService = Depends(Provide[Container.services.reward_service]),
) -> DeleteResultResponse:
    """교환 기록이 있으면 삭제 대신 비활성화"""
    return reward_service.delete_reward(reward_id)
