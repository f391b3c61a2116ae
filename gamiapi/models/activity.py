"""
외부 수집 시스템이 적재하는 활동 기록 (근태/생산성/휴식/업무일지)

게이미피케이션 엔진은 이 테이블들을 읽기만 하며 연속 기록/횟수 판정에 사용합니다.
"""

import enum
import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from gamiapi.models.base import BaseModel, BigIntegerPK


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    HALF_DAY = "HALF_DAY"
    WFH_APPROVED = "WFH_APPROVED"
    LEAVE = "LEAVE"


class AttendanceRecord(BaseModel):
    __tablename__ = "attendance_records"
    __table_args__ = (
        Index("ix_attendance_records_employee_date", "employee_id", "date"),
    )

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("employees.id"), nullable=False
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)


class ProductivityRecord(BaseModel):
    """일별 생산성 스냅샷 (Flowace 등 외부 도구 집계값)"""

    __tablename__ = "productivity_records"
    __table_args__ = (
        Index("ix_productivity_records_employee_date", "employee_id", "date"),
    )

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("employees.id"), nullable=False
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    productivity_percentage: Mapped[Optional[float]] = mapped_column(
        Float, nullable=True
    )


class BreakSession(BaseModel):
    __tablename__ = "break_sessions"
    __table_args__ = (
        Index("ix_break_sessions_employee_ended", "employee_id", "ended_at"),
    )

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("employees.id"), nullable=False
    )
    break_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    started_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[Optional[datetime.datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # 진행 중인 휴식은 ended_at 이 없음
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class WorkLogSubmission(BaseModel):
    """업무일지(태그) 제출 - 잠긴 제출만 제출 완료로 집계"""

    __tablename__ = "work_log_submissions"

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("employees.id"), nullable=False, index=True
    )
    submission_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
