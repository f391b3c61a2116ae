"""
업적 관련 스키마

criteria 는 "type" 필드로 구분되는 태그드 유니온이며, 저장된 JSON 은
services.criteria.parse_criteria 를 통해 이 모델들로 파싱됩니다.
"""

from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field


class PointsCriteria(BaseModel):
    type: Literal["points"] = "points"
    threshold: int = Field(..., ge=0, description="필요 포인트")


class LevelCriteria(BaseModel):
    type: Literal["level"] = "level"
    threshold: int = Field(..., ge=0, description="필요 레벨")


class TagsSubmittedCriteria(BaseModel):
    type: Literal["tags_submitted"] = "tags_submitted"
    threshold: int = Field(..., ge=0, description="필요 제출 횟수")


class AttendanceStreakCriteria(BaseModel):
    type: Literal["attendance_streak"] = "attendance_streak"
    threshold: int = Field(..., ge=0, description="필요 연속 출근 일수")


class ProductivityStreakCriteria(BaseModel):
    type: Literal["productivity_streak"] = "productivity_streak"
    threshold: int = Field(..., ge=0, description="필요 연속 일수")
    # 시드 데이터는 camelCase 로 저장되어 있음
    min_productivity: Optional[float] = Field(
        None,
        ge=0,
        le=100,
        validation_alias=AliasChoices("min_productivity", "minProductivity"),
        description="최소 생산성 (미지정 시 기본값 적용)",
    )


class BreaksCompliantCriteria(BaseModel):
    """최근 종료된 휴식 중 규정 시간(15~60분)을 지킨 횟수 - 연속 일수가 아님"""

    type: Literal["breaks_compliant"] = "breaks_compliant"
    threshold: int = Field(..., ge=0, description="필요 준수 횟수")


Criteria = Annotated[
    Union[
        PointsCriteria,
        LevelCriteria,
        TagsSubmittedCriteria,
        AttendanceStreakCriteria,
        ProductivityStreakCriteria,
        BreaksCompliantCriteria,
    ],
    Field(discriminator="type"),
]


class AchievementCreateRequest(BaseModel):
    """업적 생성 요청 (관리자)"""

    name: str = Field(..., min_length=1, max_length=100, description="업적명")
    description: str = Field(..., min_length=1, description="설명")
    icon: Optional[str] = Field(None, description="아이콘")
    points: int = Field(0, ge=0, description="보상 포인트")
    coins: int = Field(0, ge=0, description="보상 코인")
    category: str = Field(..., min_length=1, max_length=50, description="카테고리")
    is_active: bool = Field(True, description="활성 여부")
    criteria: Criteria = Field(..., description="해금 조건")


class AchievementUpdateRequest(BaseModel):
    """업적 수정 요청 (관리자) - 전달된 필드만 변경"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    icon: Optional[str] = None
    points: Optional[int] = Field(None, ge=0)
    coins: Optional[int] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    is_active: Optional[bool] = None
    criteria: Optional[Criteria] = None


class AchievementResponse(BaseModel):
    id: int = Field(..., description="업적 ID")
    name: str = Field(..., description="업적명")
    description: str = Field(..., description="설명")
    icon: Optional[str] = Field(None, description="아이콘")
    points: int = Field(..., description="보상 포인트")
    coins: int = Field(..., description="보상 코인")
    category: str = Field(..., description="카테고리")
    is_active: bool = Field(..., description="활성 여부")
    # 손상된 조건도 그대로 보여줄 수 있도록 원본 JSON 유지
    criteria: Optional[Any] = Field(None, description="해금 조건 (원본)")

    class Config:
        from_attributes = True


class AchievementWithStats(AchievementResponse):
    unlocked_count: int = Field(0, description="해금한 직원 수")


class UnlockedAchievement(BaseModel):
    """이번 요청에서 새로 해금된 업적"""

    achievement_id: int = Field(..., description="업적 ID")
    name: str = Field(..., description="업적명")
    points: int = Field(..., description="지급된 포인트")
    coins: int = Field(..., description="지급된 코인")


class AchievementProgress(AchievementResponse):
    """직원 기준 업적 진행 상황"""

    unlocked: bool = Field(..., description="해금 여부")
    unlocked_at: Optional[datetime] = Field(None, description="해금 시간")
    progress: int = Field(..., ge=0, le=100, description="진행률 (0-100)")


class AchievementProgressResponse(BaseModel):
    employee_id: int = Field(..., description="직원 ID")
    achievements: List[AchievementProgress] = Field(..., description="업적 목록")
    unlocked_count: int = Field(..., description="해금한 업적 수")
    total_count: int = Field(..., description="활성 업적 수")


class DeleteResultResponse(BaseModel):
    success: bool = Field(..., description="삭제 성공 여부")
    message: str = Field(..., description="결과 메시지")
