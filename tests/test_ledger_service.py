from datetime import date

import pytest

from gamiapi.core.exceptions import NotFoundError
from gamiapi.models.ledger import PointTransaction
from gamiapi.services.achievement_service import AchievementService
from gamiapi.services.award_service import AwardService
from gamiapi.services.ledger_service import LedgerService

TODAY = date(2024, 3, 15)


@pytest.fixture
def ledger_service(db, test_settings):
    return LedgerService(db, settings=test_settings)


@pytest.fixture
def award_service(db, test_settings):
    return AwardService(
        db,
        settings=test_settings,
        achievement_service=AchievementService(db, settings=test_settings, today=TODAY),
    )


class TestLedgerService:
    """원장 조회 테스트"""

    def test_get_ledger_with_progress(self, ledger_service, award_service, employee):
        award_service.award_points(employee.id, 250, "earned", "task")

        ledger = ledger_service.get_ledger(employee.id)

        assert ledger.points == 250
        assert ledger.level == 3
        assert ledger.progress.current_level_experience == 50
        assert ledger.progress.experience_to_next_level == 50
        assert ledger.leaderboard_rank == 1

    def test_missing_ledger(self, ledger_service, employee):
        with pytest.raises(NotFoundError):
            ledger_service.get_ledger(employee.id)

    def test_transactions_newest_first(self, ledger_service, award_service, employee):
        award_service.award_points(employee.id, 10, "earned", "first")
        award_service.award_points(employee.id, 20, "earned", "second")

        history = ledger_service.list_transactions(employee.id)

        assert [t.description for t in history.point_transactions] == ["second", "first"]
        assert [t.amount for t in history.coin_transactions] == [2, 1]

    def test_transactions_limit(self, ledger_service, award_service, employee):
        for index in range(5):
            award_service.award_points(employee.id, 1, "earned", f"t{index}")

        history = ledger_service.list_transactions(employee.id, limit=2)

        assert len(history.point_transactions) == 2


class TestLeaderboard:
    """리더보드 테스트"""

    def test_ordering_and_ties(self, ledger_service, award_service, make_employee):
        # Given
        a, b, c = make_employee("A"), make_employee("B"), make_employee("C")
        award_service.award_points(a.id, 50, "earned", "task")
        award_service.award_points(b.id, 80, "earned", "task")
        award_service.award_points(c.id, 50, "earned", "task")

        # When
        board = ledger_service.get_leaderboard(limit=10)

        # Then
        assert board.total_count == 3
        assert [e.employee_id for e in board.entries] == [b.id, a.id, c.id]
        assert [e.position for e in board.entries] == [1, 2, 3]
        assert board.entries[0].name == "B"

        assert ledger_service.get_leaderboard_rank(c.id).position == 3
        assert ledger_service.get_leaderboard_rank(a.id).position == 2

    def test_offset(self, ledger_service, award_service, make_employee):
        for points, name in ((30, "A"), (20, "B"), (10, "C")):
            award_service.award_points(make_employee(name).id, points, "earned", "task")

        board = ledger_service.get_leaderboard(limit=1, offset=1)

        assert [(e.position, e.name) for e in board.entries] == [(2, "B")]

    def test_rank_without_ledger(self, ledger_service, employee):
        assert ledger_service.get_leaderboard_rank(employee.id).position == 0


class TestIntegrity:
    """잔액/거래 정합성 검증 테스트"""

    def test_ok(self, ledger_service, award_service, employee):
        award_service.award_points(employee.id, 45, "earned", "task")
        award_service.award_points(employee.id, -100, "penalty", "late")

        result = ledger_service.verify_integrity(employee.id)

        assert result.status == "OK"
        assert result.recorded_points == 0
        assert result.calculated_coins == 4

    def test_mismatch_detected(self, db, ledger_service, award_service, employee):
        award_service.award_points(employee.id, 45, "earned", "task")
        db.add(
            PointTransaction(
                employee_id=employee.id,
                amount=5,
                requested_amount=5,
                type="earned",
                description="orphan",
            )
        )
        db.commit()

        result = ledger_service.verify_integrity(employee.id)

        assert result.status == "MISMATCH"
        assert result.recorded_points == 45
        assert result.calculated_points == 50
