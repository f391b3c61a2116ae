from datetime import date, datetime
from typing import List, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from gamiapi.models.activity import (
    AttendanceRecord,
    AttendanceStatus,
    BreakSession,
    ProductivityRecord,
    WorkLogSubmission,
)


class ActivityRepository:
    """외부 수집 데이터(근태/생산성/휴식/업무일지) 읽기 전용 리포지토리

    연속 기록 판정에 필요한 만큼만 최신순으로 잘라서 반환합니다.
    """

    def __init__(self, db: Session):
        self.db = db

    def recent_present_days(self, employee_id: int, limit: int) -> List[date]:
        rows = (
            self.db.query(AttendanceRecord.date)
            .filter(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.status == AttendanceStatus.PRESENT.value,
            )
            .order_by(desc(AttendanceRecord.date))
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]

    def recent_productive_days(
        self, employee_id: int, min_productivity: float, limit: int
    ) -> List[date]:
        rows = (
            self.db.query(ProductivityRecord.date)
            .filter(
                ProductivityRecord.employee_id == employee_id,
                ProductivityRecord.productivity_percentage >= min_productivity,
            )
            .order_by(desc(ProductivityRecord.date))
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]

    def recent_ended_breaks(
        self, employee_id: int, limit: int
    ) -> List[Tuple[datetime, datetime]]:
        rows = (
            self.db.query(BreakSession.started_at, BreakSession.ended_at)
            .filter(
                BreakSession.employee_id == employee_id,
                BreakSession.is_active.is_(False),
                BreakSession.ended_at.isnot(None),
            )
            .order_by(desc(BreakSession.ended_at))
            .limit(limit)
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    def count_locked_submissions(self, employee_id: int) -> int:
        return (
            self.db.query(WorkLogSubmission)
            .filter(
                WorkLogSubmission.employee_id == employee_id,
                WorkLogSubmission.is_locked.is_(True),
            )
            .count()
        )
