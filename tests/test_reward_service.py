from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from gamiapi.core.exceptions import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    OutOfStockError,
    ValidationError,
)
from gamiapi.database.connection import enable_sqlite_savepoints
from gamiapi.models import Base, Employee
from gamiapi.models.ledger import CoinTransaction, PointTransaction
from gamiapi.models.rewards import EmployeeReward, RedemptionStatusEnum, Reward
from gamiapi.repositories.ledger_repository import LedgerRepository
from gamiapi.schemas.rewards import RewardCreateRequest, RewardUpdateRequest
from gamiapi.services.achievement_service import AchievementService
from gamiapi.services.award_service import AwardService
from gamiapi.services.reward_service import RewardService

TODAY = date(2024, 3, 15)


@pytest.fixture
def reward_service(db, test_settings):
    return RewardService(db, settings=test_settings)


@pytest.fixture
def fund(db, test_settings):
    """포인트/코인 잔액 준비 - earned 지급이라 보너스 코인도 함께 생김"""
    service = AwardService(
        db,
        settings=test_settings,
        achievement_service=AchievementService(db, settings=test_settings, today=TODAY),
    )

    def _fund(employee_id: int, points: int = 0, coins: int = 0):
        if points:
            service.award_points(employee_id, points, "earned", "seed")
        if coins:
            service.award_coins(employee_id, coins, "bonus", "seed")
        return LedgerRepository(db).get(employee_id)

    return _fund


class TestRedeem:
    """리워드 교환 테스트"""

    def test_last_item_can_only_be_redeemed_once(
        self, db, reward_service, employee, make_reward, fund
    ):
        """재고 1개 - 두 번째 교환은 재고 소진, 재고는 -1 이 되지 않음"""
        # Given
        reward = make_reward("Tech Gadget", points_cost=100, stock=1)
        fund(employee.id, points=300)

        # When
        first = reward_service.redeem(employee.id, reward.id)
        with pytest.raises(OutOfStockError):
            reward_service.redeem(employee.id, reward.id)

        # Then
        assert first.remaining_stock == 0
        assert first.points == 200
        assert first.redemption.status == RedemptionStatusEnum.PENDING
        db.expire_all()
        assert db.get(Reward, reward.id).stock == 0
        assert db.query(EmployeeReward).count() == 1
        assert LedgerRepository(db).get(employee.id).points == 200

    def test_lost_stock_race_changes_nothing(
        self, db, reward_service, employee, make_reward, fund, monkeypatch
    ):
        """조건부 재고 차감이 0건이면 (다른 요청이 먼저 가져감) 아무것도 남지 않음"""
        reward = make_reward(points_cost=100, stock=1)
        fund(employee.id, points=150)
        monkeypatch.setattr(
            reward_service.rewards_repo, "decrement_stock", lambda reward_id: False
        )

        with pytest.raises(OutOfStockError):
            reward_service.redeem(employee.id, reward.id)

        assert db.query(EmployeeReward).count() == 0
        assert LedgerRepository(db).get(employee.id).points == 150

    def test_write_conflict_is_retryable(
        self, db, reward_service, employee, make_reward, fund, monkeypatch
    ):
        reward = make_reward(points_cost=100, stock=5)
        fund(employee.id, points=150)

        def conflict(*args, **kwargs):
            raise IntegrityError("INSERT INTO employee_rewards", {}, Exception("locked"))

        monkeypatch.setattr(reward_service.rewards_repo, "create_redemption", conflict)

        with pytest.raises(ConflictError) as exc_info:
            reward_service.redeem(employee.id, reward.id)

        assert exc_info.value.retryable is True
        db.expire_all()
        assert db.get(Reward, reward.id).stock == 5
        assert LedgerRepository(db).get(employee.id).points == 150

    def test_insufficient_points(self, db, reward_service, employee, make_reward, fund):
        reward = make_reward(points_cost=100, stock=3)
        fund(employee.id, points=50)

        with pytest.raises(InsufficientBalanceError):
            reward_service.redeem(employee.id, reward.id)

        db.expire_all()
        assert db.get(Reward, reward.id).stock == 3
        assert db.query(EmployeeReward).count() == 0

    def test_coin_reward(self, db, reward_service, employee, make_reward, fund):
        reward = make_reward("Early Checkout", coins_cost=20, category="COIN")
        fund(employee.id, coins=30)

        result = reward_service.redeem(employee.id, reward.id)

        assert result.coins == 10
        assert result.remaining_stock is None
        spend = db.query(CoinTransaction).filter(CoinTransaction.type == "spent").one()
        assert spend.amount == -20
        assert spend.reference == f"redemption:{result.redemption.id}"
        assert LedgerRepository(db).verify_integrity(employee.id).status == "OK"

    def test_point_spend_transaction(self, db, reward_service, employee, make_reward, fund):
        reward = make_reward(points_cost=120)
        fund(employee.id, points=200)

        result = reward_service.redeem(employee.id, reward.id)

        spend = db.query(PointTransaction).filter(PointTransaction.type == "spent").one()
        assert spend.amount == -120
        assert spend.description == f"Redeemed: {reward.name}"
        assert result.redemption.points_spent == 120
        # 교환은 경험치를 바꾸지 않음
        assert LedgerRepository(db).get(employee.id).experience == 200

    def test_cash_conversion_reward(self, db, reward_service, employee, make_reward, fund):
        reward = make_reward(
            "Cash Conversion", coins_cost=100, is_cash_conversion=True, category="COIN"
        )
        fund(employee.id, coins=200)

        result = reward_service.redeem(employee.id, reward.id, coin_amount=150)

        ledger = LedgerRepository(db).get(employee.id)
        assert result.coins == 50
        assert result.redemption.coins_spent == 150
        assert ledger.lifetime_coins == 200
        converted = db.query(CoinTransaction).filter(CoinTransaction.type == "converted").one()
        assert converted.amount == -150

    def test_cash_conversion_below_minimum(self, reward_service, employee, make_reward, fund):
        reward = make_reward(coins_cost=100, is_cash_conversion=True, category="COIN")
        fund(employee.id, coins=200)

        with pytest.raises(ValidationError):
            reward_service.redeem(employee.id, reward.id, coin_amount=50)

    def test_coin_amount_rejected_for_regular_reward(
        self, reward_service, employee, make_reward
    ):
        reward = make_reward(points_cost=10)

        with pytest.raises(ValidationError):
            reward_service.redeem(employee.id, reward.id, coin_amount=100)

    def test_inactive_reward(self, reward_service, employee, make_reward, fund):
        reward = make_reward(points_cost=10, is_active=False)
        fund(employee.id, points=100)

        with pytest.raises(ValidationError):
            reward_service.redeem(employee.id, reward.id)

    def test_missing_reward(self, reward_service, employee):
        with pytest.raises(NotFoundError):
            reward_service.redeem(employee.id, 404)


@pytest.fixture
def file_session_factory(tmp_path):
    """세션마다 별도 커넥션을 쓰는 파일 기반 sqlite"""
    engine = create_engine(f"sqlite:///{tmp_path / 'redeem_race.db'}")
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    engine.dispose()


class TestConcurrentRedeem:
    """서로 다른 세션의 동시 교환 테스트"""

    def test_two_sessions_race_for_last_item(self, file_session_factory, test_settings):
        """두 세션이 모두 재고 1 을 읽은 뒤 교환 - 조건부 차감으로 한 건만 성공"""
        # Given
        setup = file_session_factory()
        employee = Employee(name="Asha", employee_code="EMP001")
        reward = Reward(name="Tech Gadget", category="GADGET", points_cost=100, stock=1)
        setup.add_all([employee, reward])
        setup.commit()
        AwardService(
            setup,
            settings=test_settings,
            achievement_service=AchievementService(
                setup, settings=test_settings, today=TODAY
            ),
        ).award_points(employee.id, 300, "earned", "seed")
        setup.close()

        session_a = file_session_factory()
        session_b = file_session_factory()
        assert session_a.get(Reward, reward.id).stock == 1
        assert session_b.get(Reward, reward.id).stock == 1
        # 읽기 트랜잭션만 끝내고 로드된 재고 값은 세션에 그대로 남김
        session_a.commit()
        session_b.commit()

        # When
        try:
            first = RewardService(session_a, settings=test_settings).redeem(
                employee.id, reward.id
            )
            with pytest.raises((OutOfStockError, ConflictError)):
                RewardService(session_b, settings=test_settings).redeem(
                    employee.id, reward.id
                )
        finally:
            session_a.close()
            session_b.close()

        # Then
        assert first.remaining_stock == 0
        check = file_session_factory()
        try:
            assert check.get(Reward, reward.id).stock == 0
            assert check.query(EmployeeReward).count() == 1
            assert LedgerRepository(check).get(employee.id).points == 200
            assert LedgerRepository(check).verify_integrity(employee.id).status == "OK"
        finally:
            check.close()


class TestRedemptionStatus:
    """교환 상태 관리 테스트"""

    def test_rejection_does_not_refund(
        self, db, reward_service, employee, make_reward, fund
    ):
        reward = make_reward(points_cost=100)
        fund(employee.id, points=100)
        redemption = reward_service.redeem(employee.id, reward.id).redemption

        updated = reward_service.update_redemption_status(
            redemption.id, "rejected", notes="out of budget"
        )

        assert updated.status == RedemptionStatusEnum.REJECTED
        assert updated.notes == "out of budget"
        assert LedgerRepository(db).get(employee.id).points == 0

    def test_unknown_status(self, reward_service):
        with pytest.raises(ValidationError):
            reward_service.update_redemption_status(1, "lost")

    def test_missing_redemption(self, reward_service):
        with pytest.raises(NotFoundError):
            reward_service.update_redemption_status(404, "approved")

    def test_list_redemptions(self, reward_service, make_employee, make_reward, fund):
        reward = make_reward(points_cost=10)
        first, second = make_employee("A"), make_employee("B")
        for employee in (first, second):
            fund(employee.id, points=50)
            reward_service.redeem(employee.id, reward.id)

        response = reward_service.list_redemptions(employee_id=first.id)

        assert response.total_count == 1
        assert response.redemptions[0].employee_id == first.id
        assert reward_service.list_redemptions(status="pending").total_count == 2


class TestCatalog:
    """카탈로그 조회/관리 테스트"""

    def test_catalog_affordability(self, reward_service, employee, make_reward, fund):
        make_reward("Sold Out", points_cost=100, stock=0)
        make_reward("Pricey", points_cost=500)
        make_reward("Coin Treat", coins_cost=20, category="COIN")
        make_reward("Cash", coins_cost=100, is_cash_conversion=True, category="COIN")
        fund(employee.id, points=200)

        catalog = reward_service.list_catalog(employee_id=employee.id)

        items = {item.name: item for item in catalog.rewards}
        assert catalog.points == 200
        assert catalog.coins == 20
        assert items["Sold Out"].in_stock is False
        assert items["Sold Out"].affordable is False
        assert items["Pricey"].affordable is False
        assert items["Coin Treat"].affordable is True
        assert items["Cash"].affordable is False

    def test_catalog_without_employee(self, reward_service, make_reward):
        make_reward(points_cost=10)
        make_reward("Retired", points_cost=10, is_active=False)

        catalog = reward_service.list_catalog()

        assert catalog.total_count == 1
        assert catalog.rewards[0].affordable is False

    def test_create_and_update(self, reward_service):
        created = reward_service.create_reward(
            RewardCreateRequest(name="Paid Leave", category="COIN", coins_cost=50)
        )

        updated = reward_service.update_reward(created.id, RewardUpdateRequest(stock=3))

        assert updated.coins_cost == 50
        assert updated.stock == 3

    def test_update_cannot_price_in_both_currencies(self, reward_service, make_reward):
        reward = make_reward(points_cost=100)

        with pytest.raises(ValidationError):
            reward_service.update_reward(reward.id, RewardUpdateRequest(coins_cost=10))

    def test_delete_with_redemptions_deactivates(
        self, db, reward_service, employee, make_reward, fund
    ):
        reward = make_reward(points_cost=10)
        fund(employee.id, points=10)
        reward_service.redeem(employee.id, reward.id)

        result = reward_service.delete_reward(reward.id)

        assert result.success is True
        db.expire_all()
        assert db.get(Reward, reward.id).is_active is False

    def test_delete_unused(self, db, reward_service, make_reward):
        reward = make_reward(points_cost=10)

        reward_service.delete_reward(reward.id)

        assert db.get(Reward, reward.id) is None


class TestCashConversion:
    """코인 현금 전환 테스트"""

    def test_convert(self, db, reward_service, employee, fund):
        fund(employee.id, coins=150)

        result = reward_service.convert_coins_to_cash(employee.id, 120)

        assert result.cash_value == 1200
        assert result.coins_remaining == 30
        transaction = db.get(CoinTransaction, result.transaction_id)
        assert transaction.type == "converted"
        assert transaction.description == "Converted 120 coins to cash (1200)"

    def test_minimum(self, reward_service, employee, fund):
        fund(employee.id, coins=150)

        with pytest.raises(ValidationError):
            reward_service.convert_coins_to_cash(employee.id, 99)

    def test_insufficient(self, reward_service, employee, fund):
        fund(employee.id, coins=100)

        with pytest.raises(InsufficientBalanceError):
            reward_service.convert_coins_to_cash(employee.id, 101)
