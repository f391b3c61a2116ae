import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from gamiapi.models.base import BaseModel, BigIntegerPK


class RedemptionStatusEnum(str, enum.Enum):
    PENDING = "pending"  # 교환 요청됨, 관리자 승인 대기
    APPROVED = "approved"
    REJECTED = "rejected"
    USED = "used"  # 지급/사용 완료


class Reward(BaseModel):
    """교환 가능한 리워드 - 포인트 또는 코인 중 하나로만 가격이 매겨짐"""

    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint(
            "(points_cost IS NULL) <> (coins_cost IS NULL)", name="single_currency"
        ),
        CheckConstraint("stock IS NULL OR stock >= 0", name="stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)

    points_cost: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    coins_cost: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # NULL 이면 무제한 재고
    stock: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # 현금 전환 리워드는 요청 시 코인 수량을 지정 (coins_cost 는 최소값)
    is_cash_conversion: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )


class EmployeeReward(BaseModel):
    """리워드 교환 기록"""

    __tablename__ = "employee_rewards"

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("employees.id"), nullable=False, index=True
    )
    reward_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("rewards.id"), nullable=False
    )
    points_spent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    coins_spent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=RedemptionStatusEnum.PENDING.value, nullable=False
    )
    redeemed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
