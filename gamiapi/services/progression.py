"""
레벨/랭크 계산 및 원장 변경 계획 (순수 함수)

모든 잔액 변경은 LedgerSnapshot -> 새 LedgerSnapshot 으로 먼저 계산된 뒤
하나의 트랜잭션에서 저장됩니다. 이 모듈은 DB 에 접근하지 않습니다.

규칙:
- points/coins 는 0 미만으로 내려가지 않음 (하한 적용, 실제 반영량을 별도로 반환)
- experience 는 포인트 지급 시 |delta| 만큼 증가만 함
- level = experience // 100 + 1, rank 는 level 의 계단 함수
- lifetime_points 는 earned/bonus, lifetime_coins 는 earned/bonus/achievement 에서만 증가
"""

from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_EXPERIENCE_PER_LEVEL = 100
DEFAULT_POINTS_PER_BONUS_COIN = 10
DEFAULT_RANK = "Beginner"

# 높은 기준부터 평가
RANK_THRESHOLDS = (
    (20, "Legend"),
    (15, "Diamond"),
    (10, "Gold"),
    (5, "Silver"),
    (3, "Bronze"),
)

POINT_TRANSACTION_TYPES = frozenset({"earned", "spent", "bonus", "penalty"})
COIN_TRANSACTION_TYPES = frozenset(
    {"earned", "spent", "converted", "bonus", "achievement"}
)

# 보너스 코인과 lifetime_points 가 생기는 포인트 거래 타입
BONUS_POINT_TYPES = frozenset({"earned", "bonus"})
LIFETIME_COIN_TYPES = frozenset({"earned", "bonus", "achievement"})


def level_of(
    experience: int, experience_per_level: int = DEFAULT_EXPERIENCE_PER_LEVEL
) -> int:
    return experience // experience_per_level + 1


def rank_of(level: int) -> str:
    for threshold, rank in RANK_THRESHOLDS:
        if level >= threshold:
            return rank
    return DEFAULT_RANK


@dataclass(frozen=True)
class LedgerSnapshot:
    """원장 잔액의 불변 스냅샷"""

    points: int = 0
    coins: int = 0
    experience: int = 0
    level: int = 1
    rank: str = DEFAULT_RANK
    lifetime_points: int = 0
    lifetime_coins: int = 0

    @classmethod
    def from_ledger(cls, ledger) -> "LedgerSnapshot":
        return cls(
            points=ledger.points or 0,
            coins=ledger.coins or 0,
            experience=ledger.experience or 0,
            level=ledger.level or 1,
            rank=ledger.rank or DEFAULT_RANK,
            lifetime_points=ledger.lifetime_points or 0,
            lifetime_coins=ledger.lifetime_coins or 0,
        )


@dataclass(frozen=True)
class PointAwardPlan:
    snapshot: LedgerSnapshot
    points_applied: int
    bonus_coins: int


@dataclass(frozen=True)
class CoinAwardPlan:
    snapshot: LedgerSnapshot
    coins_applied: int


@dataclass(frozen=True)
class BalanceChangePlan:
    snapshot: LedgerSnapshot
    points_applied: int
    coins_applied: int


@dataclass(frozen=True)
class LevelProgressInfo:
    level: int
    current_level_experience: int
    experience_to_next_level: int
    percentage: int


def _clamped(balance: int, delta: int) -> int:
    return max(0, balance + delta)


def _with_experience(
    snapshot: LedgerSnapshot, experience: int, experience_per_level: int
) -> LedgerSnapshot:
    level = level_of(experience, experience_per_level)
    return replace(snapshot, experience=experience, level=level, rank=rank_of(level))


def plan_point_award(
    snapshot: LedgerSnapshot,
    delta: int,
    transaction_type: str,
    experience_per_level: int = DEFAULT_EXPERIENCE_PER_LEVEL,
    points_per_bonus_coin: int = DEFAULT_POINTS_PER_BONUS_COIN,
) -> PointAwardPlan:
    """포인트 지급 한 건을 적용한 결과 스냅샷 계산"""
    magnitude = abs(delta)
    new_points = _clamped(snapshot.points, delta)

    bonus_coins = 0
    lifetime_points = snapshot.lifetime_points
    if transaction_type in BONUS_POINT_TYPES:
        lifetime_points += magnitude
        bonus_coins = magnitude // points_per_bonus_coin

    updated = replace(
        snapshot,
        points=new_points,
        coins=snapshot.coins + bonus_coins,
        lifetime_points=lifetime_points,
        lifetime_coins=snapshot.lifetime_coins + bonus_coins,
    )
    updated = _with_experience(
        updated, snapshot.experience + magnitude, experience_per_level
    )
    return PointAwardPlan(
        snapshot=updated,
        points_applied=new_points - snapshot.points,
        bonus_coins=bonus_coins,
    )


def plan_coin_award(
    snapshot: LedgerSnapshot, delta: int, transaction_type: str
) -> CoinAwardPlan:
    """코인 지급 한 건 - 경험치/레벨은 변하지 않음"""
    change = plan_balance_change(snapshot, coins_delta=delta, coin_type=transaction_type)
    return CoinAwardPlan(snapshot=change.snapshot, coins_applied=change.coins_applied)


def plan_balance_change(
    snapshot: LedgerSnapshot,
    points_delta: int = 0,
    coins_delta: int = 0,
    point_type: Optional[str] = None,
    coin_type: Optional[str] = None,
) -> BalanceChangePlan:
    """경험치를 건드리지 않는 직접 잔액 증감 (업적 보상, 리워드 교환)"""
    new_points = _clamped(snapshot.points, points_delta)
    new_coins = _clamped(snapshot.coins, coins_delta)

    lifetime_points = snapshot.lifetime_points
    if point_type in BONUS_POINT_TYPES:
        lifetime_points += abs(points_delta)
    lifetime_coins = snapshot.lifetime_coins
    if coin_type in LIFETIME_COIN_TYPES:
        lifetime_coins += abs(coins_delta)

    updated = replace(
        snapshot,
        points=new_points,
        coins=new_coins,
        lifetime_points=lifetime_points,
        lifetime_coins=lifetime_coins,
    )
    return BalanceChangePlan(
        snapshot=updated,
        points_applied=new_points - snapshot.points,
        coins_applied=new_coins - snapshot.coins,
    )


def plan_achievement_reward(
    snapshot: LedgerSnapshot, points: int, coins: int
) -> BalanceChangePlan:
    return plan_balance_change(
        snapshot,
        points_delta=points,
        coins_delta=coins,
        point_type="earned",
        coin_type="achievement",
    )


def level_progress(
    experience: int, experience_per_level: int = DEFAULT_EXPERIENCE_PER_LEVEL
) -> LevelProgressInfo:
    current = experience % experience_per_level
    return LevelProgressInfo(
        level=level_of(experience, experience_per_level),
        current_level_experience=current,
        experience_to_next_level=experience_per_level - current,
        percentage=current * 100 // experience_per_level,
    )
