"""
게이미피케이션 원장 데이터 모델

직원별 잔액(포인트/코인/경험치/레벨/랭크)을 담는 EmployeeLedger 와
모든 잔액 변동을 기록하는 두 개의 append-only 거래 테이블을 정의합니다.

원칙:
1. 잔액 변경은 반드시 같은 트랜잭션에서 거래 행 1건과 함께 기록된다
2. 거래 행의 amount 합계 == 현재 잔액 (원장 정합성)
3. points/coins 는 0 미만으로 저장되지 않는다
4. level/rank 는 experience 로부터 파생되며 독립적으로 수정되지 않는다
"""

import enum
from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gamiapi.models.base import BaseModel, BigIntegerPK


class PointTransactionType(str, enum.Enum):
    EARNED = "earned"
    SPENT = "spent"
    BONUS = "bonus"
    PENALTY = "penalty"


class CoinTransactionType(str, enum.Enum):
    EARNED = "earned"
    SPENT = "spent"
    CONVERTED = "converted"
    BONUS = "bonus"
    ACHIEVEMENT = "achievement"


class EmployeeLedger(BaseModel):
    """직원별 잔액 - 첫 지급 시 지연 생성"""

    __tablename__ = "employee_ledgers"

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("employees.id"), unique=True, nullable=False
    )

    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    coins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # 경험치는 부호와 관계없이 |delta| 만큼 증가만 한다
    experience: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    rank: Mapped[str] = mapped_column(String(20), default="Beginner", nullable=False)

    lifetime_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    lifetime_coins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class PointTransaction(BaseModel):
    """포인트 거래 원장 (append-only)"""

    __tablename__ = "point_transactions"
    __table_args__ = (
        Index("ix_point_transactions_employee_created", "employee_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("employees.id"), nullable=False
    )

    # 실제 잔액에 반영된 변동량 (0 하한 적용 후)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    # 호출자가 요청한 변동량 - 하한 적용으로 amount 와 달라질 수 있음
    requested_amount: Mapped[int] = mapped_column(Integer, nullable=False)

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # 추적용 태그 (예: "achievement:3", "flowace:812") - 중복 방지용 아님
    reference: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class CoinTransaction(BaseModel):
    """코인 거래 원장 (append-only)"""

    __tablename__ = "coin_transactions"
    __table_args__ = (
        Index("ix_coin_transactions_employee_created", "employee_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("employees.id"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    requested_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
