from typing import List

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path, Query

from gamiapi.containers import Container
from gamiapi.schemas.achievements import (
    AchievementCreateRequest,
    AchievementProgressResponse,
    AchievementResponse,
    AchievementUpdateRequest,
    AchievementWithStats,
    DeleteResultResponse,
)
from gamiapi.services.achievement_service import AchievementService

router = APIRouter(prefix="/achievements", tags=["achievements"])


@router.get("", response_model=List[AchievementWithStats])
@inject
async def list_achievements(
    include_inactive: bool = Query(True, description="비활성 업적 포함"),
    achievement_service: AchievementService = Depends(
        Provide[Container.services.achievement_service]
    ),
) -> List[AchievementWithStats]:
    """업적 카탈로그 + 해금 인원 (관리자)"""
    return achievement_service.list_achievements_with_stats(
        include_inactive=include_inactive
    )


@router.post("", response_model=AchievementResponse, status_code=201)
@inject
async def create_achievement(
    request: AchievementCreateRequest,
    achievement_service: AchievementService = Depends(
        Provide[Container.services.achievement_service]
    ),
) -> AchievementResponse:
    return achievement_service.create_achievement(request)


@router.get("/employees/{employee_id}", response_model=AchievementProgressResponse)
@inject
async def list_employee_achievements(
    employee_id: int = Path(..., gt=0, description="직원 ID"),
    achievement_service: AchievementService = Depends(
        Provide[Container.services.achievement_service]
    ),
) -> AchievementProgressResponse:
    """직원 기준 업적 목록과 진행률"""
    return achievement_service.list_achievements_with_progress(employee_id)


@router.get("/{achievement_id}", response_model=AchievementResponse)
@inject
async def get_achievement(
    achievement_id: int = Path(..., gt=0, description="업적 ID"),
    achievement_service: AchievementService = Depends(
        Provide[Container.services.achievement_service]
    ),
) -> AchievementResponse:
    return achievement_service.get_achievement(achievement_id)


@router.put("/{achievement_id}", response_model=AchievementResponse)
@inject
async def update_achievement(
    request: AchievementUpdateRequest,
    achievement_id: int = Path(..., gt=0, description="업적 ID"),
    achievement_service: AchievementService = Depends(
        Provide[Container.services.achievement_service]
    ),
) -> AchievementResponse:
    return achievement_service.update_achievement(achievement_id, request)


@router.delete("/{achievement_id}", response_model=DeleteResultResponse)
@inject
async def delete_achievement(
    achievement_id: int = Path(..., gt=0, description="업적 ID"),
    achievement_service: AchievementService = Depends(
        Provide[Container.services.achievement_service]
    ),
) -> DeleteResultResponse:
    return achievement_service.delete_achievement(achievement_id)
