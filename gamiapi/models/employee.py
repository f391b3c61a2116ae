from typing import Optional

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gamiapi.models.base import BaseModel, BigIntegerPK


class Employee(BaseModel):
    """직원 - 인사 시스템이 소유하며 여기서는 리더보드 표시용으로만 읽음"""

    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    employee_code: Mapped[Optional[str]] = mapped_column(String(50), unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
