from .achievements import (
    AchievementCreateRequest,
    AchievementProgressResponse,
    AchievementResponse,
    AchievementUpdateRequest,
    Criteria,
)
from .ledger import AwardResult, CoinAwardResult, LedgerResponse
from .rewards import RedemptionResponse, RewardResponse
