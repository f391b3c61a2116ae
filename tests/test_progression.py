import pytest

from gamiapi.services.progression import (
    LedgerSnapshot,
    level_of,
    level_progress,
    plan_achievement_reward,
    plan_balance_change,
    plan_coin_award,
    plan_point_award,
    rank_of,
)


class TestLevelAndRank:
    """레벨/랭크 계산 테스트"""

    @pytest.mark.parametrize(
        "experience,expected",
        [(0, 1), (99, 1), (100, 2), (250, 3), (1999, 20)],
    )
    def test_level_of(self, experience, expected):
        assert level_of(experience) == expected

    @pytest.mark.parametrize(
        "level,expected",
        [
            (1, "Beginner"),
            (2, "Beginner"),
            (3, "Bronze"),
            (5, "Silver"),
            (9, "Silver"),
            (10, "Gold"),
            (15, "Diamond"),
            (20, "Legend"),
            (42, "Legend"),
        ],
    )
    def test_rank_of(self, level, expected):
        assert rank_of(level) == expected

    def test_level_progress(self):
        progress = level_progress(250)

        assert progress.level == 3
        assert progress.current_level_experience == 50
        assert progress.experience_to_next_level == 50
        assert progress.percentage == 50


class TestPlanPointAward:
    """포인트 지급 계획 테스트"""

    def test_first_award_from_empty_ledger(self):
        """빈 원장에 25 earned 지급 - 보너스 코인 2개"""
        # Given
        snapshot = LedgerSnapshot()

        # When
        plan = plan_point_award(snapshot, 25, "earned")

        # Then
        assert plan.snapshot.points == 25
        assert plan.snapshot.coins == 2
        assert plan.snapshot.experience == 25
        assert plan.snapshot.level == 1
        assert plan.snapshot.rank == "Beginner"
        assert plan.snapshot.lifetime_points == 25
        assert plan.snapshot.lifetime_coins == 2
        assert plan.points_applied == 25
        assert plan.bonus_coins == 2

    def test_penalty_floors_points_but_experience_grows(self):
        """포인트 20 에 -50 penalty - 0 하한, 경험치는 +50"""
        # Given
        snapshot = LedgerSnapshot(points=20, experience=80)

        # When
        plan = plan_point_award(snapshot, -50, "penalty")

        # Then
        assert plan.snapshot.points == 0
        assert plan.points_applied == -20
        assert plan.snapshot.experience == 130
        assert plan.snapshot.level == 2
        assert plan.bonus_coins == 0
        assert plan.snapshot.lifetime_points == 0

    @pytest.mark.parametrize(
        "transaction_type,expected_coins",
        [("earned", 9), ("bonus", 9), ("spent", 0), ("penalty", 0)],
    )
    def test_bonus_coins_only_for_earned_and_bonus(
        self, transaction_type, expected_coins
    ):
        plan = plan_point_award(LedgerSnapshot(points=200), 95, transaction_type)

        assert plan.bonus_coins == expected_coins
        assert plan.snapshot.coins == expected_coins

    def test_level_up_updates_rank(self):
        plan = plan_point_award(LedgerSnapshot(experience=290), 15, "earned")

        assert plan.snapshot.level == 4
        assert plan.snapshot.rank == "Bronze"

    def test_custom_progression_settings(self):
        plan = plan_point_award(
            LedgerSnapshot(),
            50,
            "earned",
            experience_per_level=50,
            points_per_bonus_coin=5,
        )

        assert plan.snapshot.level == 2
        assert plan.bonus_coins == 10

    def test_original_snapshot_is_unchanged(self):
        snapshot = LedgerSnapshot(points=10)

        plan_point_award(snapshot, 10, "earned")

        assert snapshot.points == 10


class TestPlanBalanceChange:
    """경험치와 무관한 잔액 변경 테스트"""

    def test_coin_award_does_not_touch_experience(self):
        plan = plan_coin_award(LedgerSnapshot(coins=5, experience=40), 20, "bonus")

        assert plan.snapshot.coins == 25
        assert plan.snapshot.experience == 40
        assert plan.snapshot.level == 1
        assert plan.snapshot.lifetime_coins == 20
        assert plan.coins_applied == 20

    def test_converted_coins_do_not_count_toward_lifetime(self):
        plan = plan_coin_award(
            LedgerSnapshot(coins=150, lifetime_coins=150), -100, "converted"
        )

        assert plan.snapshot.coins == 50
        assert plan.snapshot.lifetime_coins == 150

    def test_coin_deduction_is_floored(self):
        plan = plan_coin_award(LedgerSnapshot(coins=3), -10, "spent")

        assert plan.snapshot.coins == 0
        assert plan.coins_applied == -3

    def test_achievement_reward(self):
        plan = plan_achievement_reward(
            LedgerSnapshot(points=500, experience=500, level=6, rank="Silver"), 150, 15
        )

        assert plan.snapshot.points == 650
        assert plan.snapshot.coins == 15
        assert plan.snapshot.lifetime_points == 150
        assert plan.snapshot.lifetime_coins == 15
        # 업적 보상은 경험치/레벨을 바꾸지 않음
        assert plan.snapshot.experience == 500
        assert plan.snapshot.level == 6

    def test_redemption_spend(self):
        plan = plan_balance_change(
            LedgerSnapshot(points=300, lifetime_points=300),
            points_delta=-150,
            point_type="spent",
        )

        assert plan.snapshot.points == 150
        assert plan.points_applied == -150
        assert plan.snapshot.lifetime_points == 300
