from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from gamiapi.schemas.achievements import UnlockedAchievement


class LevelProgress(BaseModel):
    """현재 레벨 내 경험치 진행 상황"""

    level: int = Field(..., description="현재 레벨")
    current_level_experience: int = Field(..., description="현재 레벨에서 쌓은 경험치")
    experience_to_next_level: int = Field(..., description="다음 레벨까지 남은 경험치")
    percentage: int = Field(..., ge=0, le=100, description="진행률 (0-100)")


class LedgerResponse(BaseModel):
    """직원 원장 잔액"""

    employee_id: int = Field(..., description="직원 ID")
    points: int = Field(..., ge=0, description="현재 포인트")
    coins: int = Field(..., ge=0, description="현재 코인")
    experience: int = Field(..., ge=0, description="누적 경험치")
    level: int = Field(..., ge=1, description="레벨")
    rank: str = Field(..., description="랭크")
    lifetime_points: int = Field(..., description="누적 획득 포인트")
    lifetime_coins: int = Field(..., description="누적 획득 코인")
    updated_at: Optional[datetime] = Field(None, description="마지막 변경 시간")

    class Config:
        from_attributes = True


class LedgerDetailResponse(LedgerResponse):
    """원장 + 레벨 진행률 + 리더보드 순위"""

    progress: LevelProgress = Field(..., description="레벨 진행률")
    leaderboard_rank: int = Field(..., description="리더보드 순위 (원장이 없으면 0)")


class PointTransactionResponse(BaseModel):
    """포인트 거래 내역"""

    id: int = Field(..., description="거래 ID")
    employee_id: int = Field(..., description="직원 ID")
    amount: int = Field(..., description="잔액에 반영된 변동량")
    requested_amount: int = Field(..., description="요청된 변동량")
    type: str = Field(..., description="거래 타입")
    description: str = Field(..., description="거래 사유")
    reference: Optional[str] = Field(None, description="추적용 참조 태그")
    created_at: Optional[datetime] = Field(None, description="생성 시간")

    class Config:
        from_attributes = True


class CoinTransactionResponse(PointTransactionResponse):
    """코인 거래 내역"""


class TransactionHistoryResponse(BaseModel):
    """포인트/코인 거래 내역 조회 응답"""

    employee_id: int = Field(..., description="직원 ID")
    point_transactions: List[PointTransactionResponse] = Field(
        default_factory=list, description="포인트 거래 (최신순)"
    )
    coin_transactions: List[CoinTransactionResponse] = Field(
        default_factory=list, description="코인 거래 (최신순)"
    )


class AwardPointsRequest(BaseModel):
    """포인트 지급/차감 요청"""

    points: int = Field(..., description="변동량 (양수: 지급, 음수: 차감)")
    type: str = Field(..., description="earned | spent | bonus | penalty")
    description: str = Field(..., description="지급 사유")
    reference: Optional[str] = Field(None, max_length=200, description="추적용 참조 태그")


class AwardCoinsRequest(BaseModel):
    """코인 지급/차감 요청"""

    coins: int = Field(..., description="변동량 (양수: 지급, 음수: 차감)")
    type: str = Field(..., description="earned | spent | converted | bonus | achievement")
    description: str = Field(..., description="지급 사유")
    reference: Optional[str] = Field(None, max_length=200, description="추적용 참조 태그")


class AwardProductivityRequest(BaseModel):
    """일일 생산성 보상 요청"""

    productivity_percentage: float = Field(
        ..., ge=0, le=100, description="생산성 백분율"
    )
    reference: Optional[str] = Field(None, max_length=200, description="원천 레코드 참조")


class AwardResult(BaseModel):
    """포인트 지급 결과"""

    ledger: LedgerResponse = Field(..., description="변경 후 원장")
    transaction: PointTransactionResponse = Field(..., description="생성된 포인트 거래")
    coins_earned: int = Field(0, description="이번 지급으로 생긴 보너스 코인")
    unlocked_achievements: List[UnlockedAchievement] = Field(
        default_factory=list, description="이번 지급으로 해금된 업적"
    )


class CoinAwardResult(BaseModel):
    """코인 지급 결과"""

    ledger: LedgerResponse = Field(..., description="변경 후 원장")
    transaction: CoinTransactionResponse = Field(..., description="생성된 코인 거래")
    unlocked_achievements: List[UnlockedAchievement] = Field(
        default_factory=list, description="이번 지급으로 해금된 업적"
    )


class ProductivityAwardResult(BaseModel):
    """생산성 보상 결과 - 기준 미달이면 award 는 None"""

    productivity_percentage: float = Field(..., description="입력된 생산성")
    points: int = Field(..., description="적용된 보상 포인트")
    award: Optional[AwardResult] = Field(None, description="지급 결과")


class LeaderboardEntry(BaseModel):
    """리더보드 항목"""

    position: int = Field(..., ge=1, description="순위 (1부터)")
    employee_id: int = Field(..., description="직원 ID")
    name: Optional[str] = Field(None, description="직원 이름")
    points: int = Field(..., description="현재 포인트")
    level: int = Field(..., description="레벨")
    rank: str = Field(..., description="랭크")


class LeaderboardResponse(BaseModel):
    """리더보드 조회 응답"""

    entries: List[LeaderboardEntry] = Field(..., description="리더보드 항목")
    total_count: int = Field(..., description="원장이 있는 직원 수")


class LeaderboardRankResponse(BaseModel):
    employee_id: int = Field(..., description="직원 ID")
    position: int = Field(..., description="순위 (원장이 없으면 0)")
    total_count: int = Field(..., description="원장이 있는 직원 수")


class LedgerIntegrityResponse(BaseModel):
    """원장 정합성 검증 결과"""

    status: str = Field(..., description="검증 상태 (OK, MISMATCH)")
    employee_id: int = Field(..., description="직원 ID")
    recorded_points: int = Field(..., description="원장에 저장된 포인트")
    calculated_points: int = Field(..., description="포인트 거래 합계")
    recorded_coins: int = Field(..., description="원장에 저장된 코인")
    calculated_coins: int = Field(..., description="코인 거래 합계")
    point_transaction_count: int = Field(..., description="포인트 거래 수")
    coin_transaction_count: int = Field(..., description="코인 거래 수")
    verified_at: str = Field(..., description="검증 시간")
