from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from gamiapi.models.rewards import RedemptionStatusEnum


class RewardCreateRequest(BaseModel):
    """리워드 생성 요청 (관리자) - points_cost 와 coins_cost 중 하나만 지정"""

    name: str = Field(..., min_length=1, max_length=100, description="리워드명")
    description: Optional[str] = Field(None, description="설명")
    icon: Optional[str] = Field(None, description="아이콘")
    category: str = Field(..., min_length=1, max_length=50, description="카테고리")
    points_cost: Optional[int] = Field(None, gt=0, description="필요 포인트")
    coins_cost: Optional[int] = Field(None, gt=0, description="필요 코인")
    stock: Optional[int] = Field(None, ge=0, description="재고 (미지정 시 무제한)")
    is_active: bool = Field(True, description="활성 여부")
    is_cash_conversion: bool = Field(False, description="현금 전환 리워드 여부")

    @model_validator(mode="after")
    def check_single_currency(self):
        if (self.points_cost is None) == (self.coins_cost is None):
            raise ValueError("Exactly one of points_cost or coins_cost must be set")
        if self.is_cash_conversion and self.coins_cost is None:
            raise ValueError("Cash conversion rewards must be priced in coins")
        return self


class RewardUpdateRequest(BaseModel):
    """리워드 수정 요청 (관리자) - 전달된 필드만 변경"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    icon: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    points_cost: Optional[int] = Field(None, gt=0)
    coins_cost: Optional[int] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class RewardResponse(BaseModel):
    id: int = Field(..., description="리워드 ID")
    name: str = Field(..., description="리워드명")
    description: Optional[str] = Field(None, description="설명")
    icon: Optional[str] = Field(None, description="아이콘")
    category: str = Field(..., description="카테고리")
    points_cost: Optional[int] = Field(None, description="필요 포인트")
    coins_cost: Optional[int] = Field(None, description="필요 코인")
    stock: Optional[int] = Field(None, description="재고 (None = 무제한)")
    is_active: bool = Field(..., description="활성 여부")
    is_cash_conversion: bool = Field(False, description="현금 전환 리워드 여부")

    class Config:
        from_attributes = True


class RewardCatalogItem(RewardResponse):
    """직원 기준 카탈로그 항목"""

    in_stock: bool = Field(..., description="재고 있음")
    affordable: bool = Field(..., description="현재 잔액으로 교환 가능")


class RewardCatalogResponse(BaseModel):
    employee_id: Optional[int] = Field(None, description="직원 ID")
    points: int = Field(0, description="현재 포인트")
    coins: int = Field(0, description="현재 코인")
    rewards: List[RewardCatalogItem] = Field(..., description="리워드 목록")
    total_count: int = Field(..., description="총 리워드 수")


class RewardRedemptionRequest(BaseModel):
    """리워드 교환 요청"""

    reward_id: int = Field(..., gt=0, description="교환할 리워드 ID")
    coin_amount: Optional[int] = Field(
        None, gt=0, description="현금 전환 리워드일 때 전환할 코인 수"
    )


class RedemptionResponse(BaseModel):
    """리워드 교환 기록"""

    id: int = Field(..., description="교환 ID")
    employee_id: int = Field(..., description="직원 ID")
    reward_id: int = Field(..., description="리워드 ID")
    points_spent: int = Field(..., description="사용 포인트")
    coins_spent: int = Field(..., description="사용 코인")
    status: RedemptionStatusEnum = Field(..., description="교환 상태")
    redeemed_at: Optional[datetime] = Field(None, description="교환 시간")
    updated_at: Optional[datetime] = Field(None, description="상태 변경 시간")
    notes: Optional[str] = Field(None, description="관리자 메모")

    class Config:
        from_attributes = True


class RedemptionResult(BaseModel):
    """교환 처리 결과"""

    redemption: RedemptionResponse = Field(..., description="생성된 교환 기록")
    points: int = Field(..., description="교환 후 포인트")
    coins: int = Field(..., description="교환 후 코인")
    remaining_stock: Optional[int] = Field(None, description="남은 재고 (None = 무제한)")


class RedemptionStatusUpdateRequest(BaseModel):
    status: RedemptionStatusEnum = Field(..., description="변경할 상태")
    notes: Optional[str] = Field(None, description="관리자 메모")


class RedemptionListResponse(BaseModel):
    redemptions: List[RedemptionResponse] = Field(..., description="교환 기록")
    total_count: int = Field(..., description="총 건수")


class CashConversionRequest(BaseModel):
    coins: int = Field(..., gt=0, description="전환할 코인 수")


class CashConversionResponse(BaseModel):
    """코인 현금 전환 결과 - 실제 송금은 외부 시스템 담당"""

    employee_id: int = Field(..., description="직원 ID")
    coins_converted: int = Field(..., description="전환된 코인")
    cash_value: int = Field(..., description="환산 금액")
    coins_remaining: int = Field(..., description="남은 코인")
    transaction_id: int = Field(..., description="코인 거래 ID")
