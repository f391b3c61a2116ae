import logging

from sqlalchemy.orm import Session

from gamiapi.config import Settings, settings as default_settings
from gamiapi.core.exceptions import NotFoundError
from gamiapi.repositories.ledger_repository import LedgerRepository
from gamiapi.schemas.ledger import (
    LeaderboardRankResponse,
    LeaderboardResponse,
    LedgerDetailResponse,
    LedgerIntegrityResponse,
    LedgerResponse,
    LevelProgress,
    TransactionHistoryResponse,
)
from gamiapi.services.progression import level_progress

logger = logging.getLogger(__name__)


class LedgerService:
    """원장 읽기 API"""

    def __init__(self, db: Session, settings: Settings = default_settings):
        self.db = db
        self.settings = settings
        self.ledger_repo = LedgerRepository(db)

    def get_ledger(self, employee_id: int) -> LedgerDetailResponse:
        ledger = self.ledger_repo.get(employee_id)
        if ledger is None:
            raise NotFoundError(
                f"Ledger not found for employee: {employee_id}",
                details={"employee_id": employee_id},
            )

        progress = level_progress(ledger.experience, self.settings.EXPERIENCE_PER_LEVEL)
        return LedgerDetailResponse(
            **LedgerResponse.model_validate(ledger).model_dump(),
            progress=LevelProgress(
                level=progress.level,
                current_level_experience=progress.current_level_experience,
                experience_to_next_level=progress.experience_to_next_level,
                percentage=progress.percentage,
            ),
            leaderboard_rank=self.ledger_repo.rank_of(employee_id),
        )

    def list_transactions(
        self, employee_id: int, limit: int = 50
    ) -> TransactionHistoryResponse:
        return TransactionHistoryResponse(
            employee_id=employee_id,
            point_transactions=self.ledger_repo.list_point_transactions(
                employee_id, limit=limit
            ),
            coin_transactions=self.ledger_repo.list_coin_transactions(
                employee_id, limit=limit
            ),
        )

    def get_leaderboard(self, limit: int = 10, offset: int = 0) -> LeaderboardResponse:
        return LeaderboardResponse(
            entries=self.ledger_repo.leaderboard(limit=limit, offset=offset),
            total_count=self.ledger_repo.count_ledgers(),
        )

    def get_leaderboard_rank(self, employee_id: int) -> LeaderboardRankResponse:
        return LeaderboardRankResponse(
            employee_id=employee_id,
            position=self.ledger_repo.rank_of(employee_id),
            total_count=self.ledger_repo.count_ledgers(),
        )

    def verify_integrity(self, employee_id: int) -> LedgerIntegrityResponse:
        result = self.ledger_repo.verify_integrity(employee_id)
        if result.status != "OK":
            logger.error(
                f"Ledger mismatch for employee {employee_id}: "
                f"points {result.recorded_points} vs {result.calculated_points}, "
                f"coins {result.recorded_coins} vs {result.calculated_coins}"
            )
        return result
