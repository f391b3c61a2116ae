"""
업적 카탈로그 / 해금 기록 모델

criteria 는 JSON 으로 저장되며 평가 시점에 services.criteria 에서
타입별 스키마로 파싱됩니다. 알 수 없는 형식은 "미충족"으로 처리됩니다.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from gamiapi.models.base import BaseModel, BigIntegerPK

CriteriaJSON = JSON().with_variant(JSONB(), "postgresql")


class Achievement(BaseModel):
    """업적 정의 - 관리자만 생성/수정/삭제하며 엔진은 읽기만 한다"""

    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 해금 시 지급되는 보상
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    coins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    category: Mapped[str] = mapped_column(String(50), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # 예: {"type": "attendance_streak", "threshold": 7}
    criteria: Mapped[Optional[dict]] = mapped_column(CriteriaJSON, nullable=True)


class EmployeeAchievement(BaseModel):
    """업적 해금 기록 - (employee_id, achievement_id) 당 최대 1건"""

    __tablename__ = "employee_achievements"
    __table_args__ = (UniqueConstraint("employee_id", "achievement_id"),)

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("employees.id"), nullable=False, index=True
    )
    achievement_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("achievements.id", ondelete="CASCADE"), nullable=False
    )
    unlocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    progress: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
