# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .ledger_repository import LedgerRepository
from .achievement_repository import AchievementRepository, SqlAchievementRepository
from .activity_repository import ActivityRepository
from .rewards_repository import RewardsRepository

__all__ = [
    "BaseRepository",
    "LedgerRepository",
    "AchievementRepository",
    "SqlAchievementRepository",
    "ActivityRepository",
    "RewardsRepository",
]
