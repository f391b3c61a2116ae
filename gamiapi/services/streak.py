"""
연속 기록 / 휴식 준수 횟수 계산 (순수 함수)

두 가지 판정이 있으며 서로 다른 알고리즘입니다.

1. current_streak: 날짜 기반 연속 일수 (출근, 생산성)
   기준일(오늘)부터 과거 방향으로 걸어가며 직전 날짜와의 차이가
   max_gap_days 이하이면 연속으로 센다. 더 큰 간격을 만나면 중단.
   오늘 기록이 아직 없어도 어제부터 연속이면 인정된다.

2. count_compliant_breaks: 날짜와 무관한 "횟수"
   최근 종료된 휴식들 중 15~60분(양 끝 포함) 사이였던 세션 수.
"""

from datetime import date, datetime
from typing import Iterable, Optional, Tuple, Union

import pytz

DayLike = Union[date, datetime]


def to_calendar_day(value: DayLike, tz_name: Optional[str] = None) -> date:
    """타임스탬프를 지정 시간대의 달력 날짜로 변환

    - date: 그대로 사용
    - tz-aware datetime: tz_name 시간대로 변환 후 날짜
    - naive datetime: UTC 로 간주
    """
    if not isinstance(value, datetime):
        return value
    if tz_name is None:
        return value.date()
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value.astimezone(pytz.timezone(tz_name)).date()


def today_in(tz_name: str) -> date:
    return datetime.now(pytz.timezone(tz_name)).date()


def current_streak(
    days: Iterable[DayLike],
    anchor: date,
    max_gap_days: int = 1,
    tz_name: Optional[str] = None,
) -> int:
    """anchor 기준 가장 최근 연속 일수

    days 는 이미 조건(PRESENT, 생산성 기준 등)을 만족하는 기록들의 날짜.
    같은 날짜는 한 번만 세고, anchor 이후(미래) 날짜는 무시한다.
    """
    normalized = {to_calendar_day(day, tz_name) for day in days}
    ordered = sorted((day for day in normalized if day <= anchor), reverse=True)

    streak = 0
    cursor = anchor
    for day in ordered:
        if (cursor - day).days > max_gap_days:
            break
        streak += 1
        cursor = day
    return streak


def break_minutes(started_at: datetime, ended_at: datetime) -> float:
    return abs((ended_at - started_at).total_seconds()) / 60


def count_compliant_breaks(
    sessions: Iterable[Tuple[datetime, datetime]],
    min_minutes: int = 15,
    max_minutes: int = 60,
) -> int:
    """(started_at, ended_at) 목록 중 규정 시간을 지킨 세션 수"""
    return sum(
        1
        for started_at, ended_at in sessions
        if started_at is not None
        and ended_at is not None
        and min_minutes <= break_minutes(started_at, ended_at) <= max_minutes
    )
