import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gamiapi.config import Settings, settings as default_settings
from gamiapi.core.exceptions import ConflictError, NotFoundError
from gamiapi.models.achievement import Achievement, EmployeeAchievement
from gamiapi.repositories.achievement_repository import (
    AchievementRepository,
    SqlAchievementRepository,
)
from gamiapi.repositories.activity_repository import ActivityRepository
from gamiapi.repositories.ledger_repository import LedgerRepository
from gamiapi.schemas.achievements import (
    AchievementCreateRequest,
    AchievementProgress,
    AchievementProgressResponse,
    AchievementResponse,
    AchievementUpdateRequest,
    AchievementWithStats,
    DeleteResultResponse,
    UnlockedAchievement,
)
from gamiapi.services.criteria import CriteriaEvaluator, parse_criteria
from gamiapi.services.progression import (
    LedgerSnapshot,
    plan_achievement_reward,
)
from gamiapi.services.unit_of_work import transactional

logger = logging.getLogger(__name__)


class AchievementService:
    """업적 해금 판정, 진행률 조회, 카탈로그 관리"""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        achievement_repo: Optional[AchievementRepository] = None,
        today: Optional[date] = None,
    ):
        self.db = db
        self.settings = settings
        self.achievement_repo = achievement_repo or SqlAchievementRepository(db)
        self.ledger_repo = LedgerRepository(db)
        self.activity_repo = ActivityRepository(db)
        self.evaluator = CriteriaEvaluator(self.activity_repo, settings, today)

    def _qualifies(
        self, employee_id: int, achievement: Achievement, snapshot: LedgerSnapshot
    ) -> bool:
        # 업적 정의가 깨져 있어도 지급 자체는 막지 않는다 (DB 오류는 예외)
        try:
            criteria = parse_criteria(achievement.criteria)
            if criteria is None:
                logger.warning(
                    f"Achievement {achievement.id} has unrecognized criteria: "
                    f"{achievement.criteria!r}"
                )
                return False
            return self.evaluator.is_satisfied(employee_id, criteria, snapshot)
        except SQLAlchemyError:
            raise
        except Exception as e:
            logger.warning(
                f"Failed to evaluate achievement {achievement.id} "
                f"for employee {employee_id}: {str(e)}"
            )
            return False

    def _grant_reward(self, employee_id: int, achievement: Achievement) -> None:
        """업적 보상은 원장에 직접 반영 - 지급 엔진을 다시 호출하지 않음"""
        ledger = self.ledger_repo.get_or_create(employee_id, for_update=True)
        plan = plan_achievement_reward(
            LedgerSnapshot.from_ledger(ledger), achievement.points, achievement.coins
        )
        self.ledger_repo.write_snapshot(ledger, plan.snapshot)

        description = f"Achievement unlocked: {achievement.name}"
        reference = f"achievement:{achievement.id}"
        if achievement.points:
            self.ledger_repo.record_point_transaction(
                employee_id,
                plan.points_applied,
                "earned",
                description,
                reference,
                requested_amount=achievement.points,
            )
        if achievement.coins:
            self.ledger_repo.record_coin_transaction(
                employee_id,
                plan.coins_applied,
                "achievement",
                description,
                reference,
                requested_amount=achievement.coins,
            )

    def resolve_unlocks(
        self, employee_id: int, snapshot: LedgerSnapshot
    ) -> List[UnlockedAchievement]:
        """지급 직후 호출 - 호출자의 트랜잭션 안에서 실행됨

        모든 미해금 활성 업적을 지급 후 스냅샷 기준으로 한 번만 평가한다.
        업적 보상으로 늘어난 포인트는 다음 지급 때 평가 대상이 된다.
        """
        unlocked: List[UnlockedAchievement] = []
        for achievement in self.achievement_repo.list_locked_for(employee_id):
            if not self._qualifies(employee_id, achievement, snapshot):
                continue
            if not self.achievement_repo.try_unlock(employee_id, achievement.id):
                logger.info(
                    f"Achievement {achievement.id} already unlocked "
                    f"for employee {employee_id}"
                )
                continue

            self._grant_reward(employee_id, achievement)
            unlocked.append(
                UnlockedAchievement(
                    achievement_id=achievement.id,
                    name=achievement.name,
                    points=achievement.points,
                    coins=achievement.coins,
                )
            )
            logger.info(
                f"Employee {employee_id} unlocked achievement {achievement.id} "
                f"({achievement.name}): +{achievement.points} points, "
                f"+{achievement.coins} coins"
            )
        return unlocked

    def _snapshot_for(self, employee_id: int) -> LedgerSnapshot:
        ledger = self.ledger_repo.get(employee_id)
        return LedgerSnapshot.from_ledger(ledger) if ledger else LedgerSnapshot()

    def _progress(
        self,
        employee_id: int,
        achievement: Achievement,
        snapshot: LedgerSnapshot,
        unlocked: bool,
    ) -> int:
        if unlocked:
            return 100
        try:
            return self.evaluator.progress(
                employee_id, parse_criteria(achievement.criteria), snapshot
            )
        except SQLAlchemyError:
            raise
        except Exception as e:
            logger.warning(
                f"Failed to compute progress of achievement {achievement.id}: {str(e)}"
            )
            return 0

    def progress_of(self, employee_id: int, achievement: Achievement) -> int:
        """0~100 진행률 - 해금된 업적은 항상 100, 부작용 없음"""
        unlocked = achievement.id in self.achievement_repo.unlocked_ids(employee_id)
        return self._progress(
            employee_id, achievement, self._snapshot_for(employee_id), unlocked
        )

    def list_achievements_with_progress(
        self, employee_id: int
    ) -> AchievementProgressResponse:
        snapshot = self._snapshot_for(employee_id)
        unlocked_at = self.achievement_repo.unlocked_at_by_id(employee_id)

        items = []
        for achievement in self.achievement_repo.list_active():
            is_unlocked = achievement.id in unlocked_at
            base = AchievementResponse.model_validate(achievement)
            items.append(
                AchievementProgress(
                    **base.model_dump(),
                    unlocked=is_unlocked,
                    unlocked_at=unlocked_at.get(achievement.id),
                    progress=self._progress(
                        employee_id, achievement, snapshot, is_unlocked
                    ),
                )
            )

        return AchievementProgressResponse(
            employee_id=employee_id,
            achievements=items,
            unlocked_count=sum(1 for item in items if item.unlocked),
            total_count=len(items),
        )

    # 관리자용 카탈로그 관리

    def _sql_repo(self) -> SqlAchievementRepository:
        if not isinstance(self.achievement_repo, SqlAchievementRepository):
            raise TypeError("Catalog management requires the SQL achievement repository")
        return self.achievement_repo

    def _get_or_404(self, achievement_id: int) -> Achievement:
        achievement = self._sql_repo().get_model(achievement_id)
        if achievement is None:
            raise NotFoundError(
                f"Achievement not found: {achievement_id}",
                details={"achievement_id": achievement_id},
            )
        return achievement

    def list_achievements_with_stats(
        self, include_inactive: bool = True
    ) -> List[AchievementWithStats]:
        repo = self._sql_repo()
        counts: Dict[int, int] = repo.unlock_counts()
        return [
            AchievementWithStats(
                **AchievementResponse.model_validate(achievement).model_dump(),
                unlocked_count=counts.get(achievement.id, 0),
            )
            for achievement in repo.list_all(include_inactive=include_inactive)
        ]

    def get_achievement(self, achievement_id: int) -> AchievementResponse:
        return AchievementResponse.model_validate(self._get_or_404(achievement_id))

    def create_achievement(self, request: AchievementCreateRequest) -> AchievementResponse:
        repo = self._sql_repo()
        with transactional(self.db):
            if repo.get_by_name(request.name) is not None:
                raise ConflictError(
                    f"Achievement name already exists: {request.name}",
                    retryable=False,
                )
            data = request.model_dump(exclude={"criteria"})
            data["criteria"] = request.criteria.model_dump(exclude_none=True)
            created = repo.create(**data)

        logger.info(f"Created achievement {created.id} ({created.name})")
        return created

    def update_achievement(
        self, achievement_id: int, request: AchievementUpdateRequest
    ) -> AchievementResponse:
        repo = self._sql_repo()
        changes = request.model_dump(exclude_unset=True, exclude={"criteria"})
        if request.criteria is not None:
            changes["criteria"] = request.criteria.model_dump(exclude_none=True)

        with transactional(self.db):
            achievement = self._get_or_404(achievement_id)
            new_name = changes.get("name")
            if new_name and new_name != achievement.name:
                existing = repo.get_by_name(new_name)
                if existing is not None:
                    raise ConflictError(
                        f"Achievement name already exists: {new_name}",
                        retryable=False,
                    )
            updated = repo.update(achievement_id, **changes)

        logger.info(f"Updated achievement {achievement_id}: {sorted(changes)}")
        return updated

    def delete_achievement(self, achievement_id: int) -> DeleteResultResponse:
        with transactional(self.db):
            self._get_or_404(achievement_id)
            # 지급된 포인트/코인 거래는 그대로 남고 해금 기록만 정리
            self.db.query(EmployeeAchievement).filter(
                EmployeeAchievement.achievement_id == achievement_id
            ).delete(synchronize_session=False)
            self._sql_repo().delete(achievement_id)

        logger.info(f"Deleted achievement {achievement_id}")
        return DeleteResultResponse(
            success=True, message=f"Achievement {achievement_id} deleted"
        )
