"""
포인트/코인 지급 엔진

모든 지급은 하나의 작업 단위에서 처리됩니다.
  원장 잠금(FOR UPDATE) -> 변경 계획 계산(progression) -> 잔액 저장
  -> 거래 행 기록 -> 업적 해금 판정 -> commit
어느 단계에서든 실패하면 전체가 롤백됩니다.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from gamiapi.config import Settings, settings as default_settings
from gamiapi.core.exceptions import ValidationError
from gamiapi.repositories.ledger_repository import LedgerRepository
from gamiapi.schemas.ledger import (
    AwardResult,
    CoinAwardResult,
    CoinTransactionResponse,
    LedgerResponse,
    PointTransactionResponse,
    ProductivityAwardResult,
)
from gamiapi.services.achievement_service import AchievementService
from gamiapi.services.progression import (
    COIN_TRANSACTION_TYPES,
    POINT_TRANSACTION_TYPES,
    LedgerSnapshot,
    plan_coin_award,
    plan_point_award,
)
from gamiapi.services.unit_of_work import transactional

logger = logging.getLogger(__name__)

# 외부 수집 시스템이 사용하는 기본 지급 포인트
POINT_VALUES = {
    "ATTENDANCE_PRESENT": 10,
    "ATTENDANCE_STREAK_BONUS": 5,
    "TAG_SUBMITTED": 5,
    "TAG_ON_TIME": 2,
    "BREAK_COMPLIANT": 3,
    "PRODUCTIVITY_HIGH": 15,
    "PRODUCTIVITY_MEDIUM": 10,
    "PRODUCTIVITY_LOW": 5,
    "EARLY_CHECKIN": 5,
    "LATE_PENALTY": -5,
    "ABSENCE_PENALTY": -10,
}


def _validate_award(amount, transaction_type, description, allowed_types) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(
            "Award amount must be an integer",
            details={"amount": repr(amount)},
        )
    if amount == 0:
        raise ValidationError("Award amount must not be zero")
    if transaction_type not in allowed_types:
        raise ValidationError(
            f"Unknown transaction type: {transaction_type}",
            details={"allowed": sorted(allowed_types)},
        )
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("Description is required")


class AwardService:
    """포인트/코인 지급 서비스"""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        achievement_service: Optional[AchievementService] = None,
    ):
        self.db = db
        self.settings = settings
        self.ledger_repo = LedgerRepository(db)
        self.achievement_service = achievement_service or AchievementService(
            db, settings=settings
        )

    def award_points(
        self,
        employee_id: int,
        points: int,
        transaction_type: str,
        description: str,
        reference: Optional[str] = None,
    ) -> AwardResult:
        """포인트 지급/차감

        - 포인트는 0 미만으로 내려가지 않으며 경험치는 |points| 만큼 항상 증가
        - earned/bonus 일 때만 10점당 1코인 보너스와 lifetime 누적
        - 지급 직후 같은 트랜잭션에서 업적 해금 판정
        """
        _validate_award(points, transaction_type, description, POINT_TRANSACTION_TYPES)
        description = description.strip()

        with transactional(self.db):
            ledger = self.ledger_repo.get_or_create(employee_id, for_update=True)
            plan = plan_point_award(
                LedgerSnapshot.from_ledger(ledger),
                points,
                transaction_type,
                experience_per_level=self.settings.EXPERIENCE_PER_LEVEL,
                points_per_bonus_coin=self.settings.POINTS_PER_BONUS_COIN,
            )
            self.ledger_repo.write_snapshot(ledger, plan.snapshot)

            transaction = self.ledger_repo.record_point_transaction(
                employee_id,
                plan.points_applied,
                transaction_type,
                description,
                reference,
                requested_amount=points,
            )
            if plan.bonus_coins > 0:
                self.ledger_repo.record_coin_transaction(
                    employee_id,
                    plan.bonus_coins,
                    "earned",
                    f"Bonus coins from {description}",
                    reference,
                )

            unlocked = self.achievement_service.resolve_unlocks(
                employee_id, plan.snapshot
            )

            result = AwardResult(
                ledger=LedgerResponse.model_validate(ledger),
                transaction=PointTransactionResponse.model_validate(transaction),
                coins_earned=plan.bonus_coins,
                unlocked_achievements=unlocked,
            )

        logger.info(
            f"Awarded {points} points ({transaction_type}) to employee {employee_id}: "
            f"applied={plan.points_applied}, coins={plan.bonus_coins}, "
            f"level={result.ledger.level}, unlocked={len(unlocked)}"
        )
        return result

    def award_coins(
        self,
        employee_id: int,
        coins: int,
        transaction_type: str,
        description: str,
        reference: Optional[str] = None,
    ) -> CoinAwardResult:
        """코인 지급/차감 - 경험치와 레벨에는 영향 없음

        lifetime_coins 는 earned/bonus/achievement 에서만 증가 (converted 제외)
        """
        _validate_award(coins, transaction_type, description, COIN_TRANSACTION_TYPES)
        description = description.strip()

        with transactional(self.db):
            ledger = self.ledger_repo.get_or_create(employee_id, for_update=True)
            plan = plan_coin_award(
                LedgerSnapshot.from_ledger(ledger), coins, transaction_type
            )
            self.ledger_repo.write_snapshot(ledger, plan.snapshot)

            transaction = self.ledger_repo.record_coin_transaction(
                employee_id,
                plan.coins_applied,
                transaction_type,
                description,
                reference,
                requested_amount=coins,
            )
            unlocked = self.achievement_service.resolve_unlocks(
                employee_id, plan.snapshot
            )

            result = CoinAwardResult(
                ledger=LedgerResponse.model_validate(ledger),
                transaction=CoinTransactionResponse.model_validate(transaction),
                unlocked_achievements=unlocked,
            )

        logger.info(
            f"Awarded {coins} coins ({transaction_type}) to employee {employee_id}: "
            f"applied={plan.coins_applied}"
        )
        return result

    def productivity_points(self, productivity_percentage: float) -> int:
        """생산성 구간별 포인트 (기본 90%+ 15, 75%+ 10, 60%+ 5, 그 외 0)"""
        for minimum in sorted(self.settings.PRODUCTIVITY_POINT_TIERS, reverse=True):
            if productivity_percentage >= minimum:
                return self.settings.PRODUCTIVITY_POINT_TIERS[minimum]
        return 0

    def award_productivity(
        self,
        employee_id: int,
        productivity_percentage: float,
        reference: Optional[str] = None,
    ) -> ProductivityAwardResult:
        if isinstance(productivity_percentage, bool) or not isinstance(
            productivity_percentage, (int, float)
        ):
            raise ValidationError("Productivity percentage must be a number")
        if not 0 <= productivity_percentage <= 100:
            raise ValidationError(
                "Productivity percentage must be between 0 and 100",
                details={"productivity_percentage": productivity_percentage},
            )

        points = self.productivity_points(productivity_percentage)
        if points <= 0:
            logger.info(
                f"Productivity {productivity_percentage}% below reward tiers "
                f"for employee {employee_id}"
            )
            return ProductivityAwardResult(
                productivity_percentage=productivity_percentage, points=0
            )

        award = self.award_points(
            employee_id,
            points,
            "earned",
            f"Productivity reward ({productivity_percentage:g}%)",
            reference,
        )
        return ProductivityAwardResult(
            productivity_percentage=productivity_percentage,
            points=points,
            award=award,
        )

    def award_break_compliance(
        self, employee_id: int, break_id: int, duration_minutes: int
    ) -> Optional[AwardResult]:
        """휴식 종료 시 호출 - 규정 시간(15~60분) 준수 시에만 지급"""
        if not (
            self.settings.BREAK_COMPLIANT_MIN_MINUTES
            <= duration_minutes
            <= self.settings.BREAK_COMPLIANT_MAX_MINUTES
        ):
            return None
        return self.award_points(
            employee_id,
            POINT_VALUES["BREAK_COMPLIANT"],
            "earned",
            "Compliant break duration",
            f"break:{break_id}",
        )

    def award_work_log_submission(
        self, employee_id: int, submission_id: int, on_time: bool = False
    ) -> List[AwardResult]:
        """업무일지 제출 훅 - WORK_LOG_AWARDS_ENABLED 가 꺼져 있으면 아무것도 하지 않음"""
        if not self.settings.WORK_LOG_AWARDS_ENABLED:
            return []

        reference = f"submission:{submission_id}"
        results = [
            self.award_points(
                employee_id,
                POINT_VALUES["TAG_SUBMITTED"],
                "earned",
                "Tags submitted",
                reference,
            )
        ]
        if on_time:
            results.append(
                self.award_points(
                    employee_id,
                    POINT_VALUES["TAG_ON_TIME"],
                    "bonus",
                    "On-time submission bonus",
                    reference,
                )
            )
        return results
