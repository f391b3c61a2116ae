"""
업적 해금 조건 파싱 및 평가

저장된 criteria JSON 을 schemas.achievements 의 태그드 유니온으로 파싱하고,
조건 타입별 측정 함수로 "현재 값"을 구해 threshold 와 비교합니다.

알 수 없는 타입이나 형식이 깨진 조건은 None 으로 파싱되어 항상 미충족입니다.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, Optional, Type

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from gamiapi.config import Settings, settings as default_settings
from gamiapi.repositories.activity_repository import ActivityRepository
from gamiapi.schemas.achievements import (
    AttendanceStreakCriteria,
    BreaksCompliantCriteria,
    Criteria,
    LevelCriteria,
    PointsCriteria,
    ProductivityStreakCriteria,
    TagsSubmittedCriteria,
)
from gamiapi.services.progression import LedgerSnapshot
from gamiapi.services.streak import count_compliant_breaks, current_streak, today_in

logger = logging.getLogger(__name__)

_criteria_adapter = TypeAdapter(Criteria)


def parse_criteria(raw: Any) -> Optional[Criteria]:
    if not isinstance(raw, dict):
        return None
    try:
        return _criteria_adapter.validate_python(raw)
    except PydanticValidationError:
        return None


class CriteriaEvaluator:
    """조건 타입별 현재 값 측정기

    threshold 형 조건(points, level, tags_submitted)은 스냅샷/카운트를,
    연속형 조건은 최근 2×threshold 건의 기록만 조회해 계산합니다.
    """

    def __init__(
        self,
        activity_repo: ActivityRepository,
        settings: Settings = default_settings,
        today: Optional[date] = None,
    ):
        self.activity_repo = activity_repo
        self.settings = settings
        self.today = today
        self._measures: Dict[Type, Callable[[int, Any, LedgerSnapshot], int]] = {
            PointsCriteria: self._points,
            LevelCriteria: self._level,
            TagsSubmittedCriteria: self._tags_submitted,
            AttendanceStreakCriteria: self._attendance_streak,
            ProductivityStreakCriteria: self._productivity_streak,
            BreaksCompliantCriteria: self._breaks_compliant,
        }

    def _anchor(self) -> date:
        return self.today or today_in(self.settings.TIMEZONE)

    def _lookback(self, threshold: int) -> int:
        return max(1, threshold * self.settings.STREAK_LOOKBACK_FACTOR)

    def _points(self, employee_id, criteria, snapshot) -> int:
        return snapshot.points

    def _level(self, employee_id, criteria, snapshot) -> int:
        return snapshot.level

    def _tags_submitted(self, employee_id, criteria, snapshot) -> int:
        return self.activity_repo.count_locked_submissions(employee_id)

    def _attendance_streak(self, employee_id, criteria, snapshot) -> int:
        days = self.activity_repo.recent_present_days(
            employee_id, self._lookback(criteria.threshold)
        )
        return current_streak(days, self._anchor(), self.settings.STREAK_MAX_GAP_DAYS)

    def _productivity_streak(self, employee_id, criteria, snapshot) -> int:
        min_productivity = criteria.min_productivity
        if min_productivity is None:
            min_productivity = self.settings.DEFAULT_MIN_PRODUCTIVITY
        days = self.activity_repo.recent_productive_days(
            employee_id, min_productivity, self._lookback(criteria.threshold)
        )
        return current_streak(days, self._anchor(), self.settings.STREAK_MAX_GAP_DAYS)

    def _breaks_compliant(self, employee_id, criteria, snapshot) -> int:
        # 연속 일수가 아니라 최근 N 건 중 준수 횟수
        sessions = self.activity_repo.recent_ended_breaks(
            employee_id, self._lookback(criteria.threshold)
        )
        return count_compliant_breaks(
            sessions,
            self.settings.BREAK_COMPLIANT_MIN_MINUTES,
            self.settings.BREAK_COMPLIANT_MAX_MINUTES,
        )

    def current_value(
        self, employee_id: int, criteria: Criteria, snapshot: LedgerSnapshot
    ) -> int:
        measure = self._measures.get(type(criteria))
        if measure is None:
            return 0
        return measure(employee_id, criteria, snapshot)

    def is_satisfied(
        self, employee_id: int, criteria: Optional[Criteria], snapshot: LedgerSnapshot
    ) -> bool:
        if criteria is None:
            return False
        return self.current_value(employee_id, criteria, snapshot) >= criteria.threshold

    def progress(
        self, employee_id: int, criteria: Optional[Criteria], snapshot: LedgerSnapshot
    ) -> int:
        """0~100 진행률 - 조건이 없거나 threshold 가 0 이면 0"""
        if criteria is None or criteria.threshold <= 0:
            return 0
        value = self.current_value(employee_id, criteria, snapshot)
        return max(0, min(100, value * 100 // criteria.threshold))
