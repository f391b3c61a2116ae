# 모든 테이블이 Base.metadata 에 등록되도록 모델 모듈을 한 번에 로드

from .base import Base, BaseModel
from .employee import Employee
from .ledger import (
    CoinTransaction,
    CoinTransactionType,
    EmployeeLedger,
    PointTransaction,
    PointTransactionType,
)
from .achievement import Achievement, EmployeeAchievement
from .rewards import EmployeeReward, RedemptionStatusEnum, Reward
from .activity import (
    AttendanceRecord,
    AttendanceStatus,
    BreakSession,
    ProductivityRecord,
    WorkLogSubmission,
)

__all__ = [
    "Base",
    "BaseModel",
    "Employee",
    "EmployeeLedger",
    "PointTransaction",
    "PointTransactionType",
    "CoinTransaction",
    "CoinTransactionType",
    "Achievement",
    "EmployeeAchievement",
    "Reward",
    "EmployeeReward",
    "RedemptionStatusEnum",
    "AttendanceRecord",
    "AttendanceStatus",
    "ProductivityRecord",
    "BreakSession",
    "WorkLogSubmission",
]
