from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Set

from sqlalchemy import asc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gamiapi.models.achievement import Achievement, EmployeeAchievement
from gamiapi.repositories.base import BaseRepository
from gamiapi.schemas.achievements import AchievementResponse


class AchievementRepository(ABC):
    """해금 판정에 필요한 업적 카탈로그 읽기 + 해금 기록 인터페이스"""

    @abstractmethod
    def list_active(self) -> List[Achievement]:
        ...

    @abstractmethod
    def list_locked_for(self, employee_id: int) -> List[Achievement]:
        """활성 업적 중 아직 해금하지 않은 것"""

    @abstractmethod
    def unlocked_at_by_id(self, employee_id: int) -> Dict[int, datetime]:
        ...

    def unlocked_ids(self, employee_id: int) -> Set[int]:
        return set(self.unlocked_at_by_id(employee_id))

    @abstractmethod
    def try_unlock(self, employee_id: int, achievement_id: int) -> bool:
        """해금 기록 생성 - 이미 해금되어 있으면 False"""


class SqlAchievementRepository(
    BaseRepository[Achievement, AchievementResponse], AchievementRepository
):
    def __init__(self, db: Session):
        super().__init__(Achievement, AchievementResponse, db)

    def list_active(self) -> List[Achievement]:
        return (
            self.db.query(Achievement)
            .filter(Achievement.is_active.is_(True))
            .order_by(asc(Achievement.id))
            .all()
        )

    def list_locked_for(self, employee_id: int) -> List[Achievement]:
        unlocked = (
            self.db.query(EmployeeAchievement.achievement_id)
            .filter(EmployeeAchievement.employee_id == employee_id)
        )
        return (
            self.db.query(Achievement)
            .filter(
                Achievement.is_active.is_(True),
                Achievement.id.notin_(unlocked),
            )
            .order_by(asc(Achievement.id))
            .all()
        )

    def unlocked_at_by_id(self, employee_id: int) -> Dict[int, datetime]:
        rows = (
            self.db.query(EmployeeAchievement.achievement_id, EmployeeAchievement.unlocked_at)
            .filter(EmployeeAchievement.employee_id == employee_id)
            .all()
        )
        return {achievement_id: unlocked_at for achievement_id, unlocked_at in rows}

    def try_unlock(self, employee_id: int, achievement_id: int) -> bool:
        # 동시 해금 경합은 (employee_id, achievement_id) 유니크 제약으로 막고
        # SAVEPOINT 만 되돌려 바깥 트랜잭션은 유지한다
        try:
            with self.db.begin_nested():
                self.db.add(
                    EmployeeAchievement(
                        employee_id=employee_id,
                        achievement_id=achievement_id,
                        progress=100,
                    )
                )
                self.db.flush()
        except IntegrityError:
            return False
        return True

    def get_by_name(self, name: str) -> Optional[Achievement]:
        return self.db.query(Achievement).filter(Achievement.name == name).first()

    def list_all(self, include_inactive: bool = True) -> List[Achievement]:
        query = self.db.query(Achievement)
        if not include_inactive:
            query = query.filter(Achievement.is_active.is_(True))
        return query.order_by(asc(Achievement.category), asc(Achievement.id)).all()

    def unlock_counts(self) -> Dict[int, int]:
        rows = (
            self.db.query(
                EmployeeAchievement.achievement_id,
                func.count(EmployeeAchievement.id),
            )
            .group_by(EmployeeAchievement.achievement_id)
            .all()
        )
        return {achievement_id: count for achievement_id, count in rows}
