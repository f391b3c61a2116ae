from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from gamiapi.core.exceptions import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    OutOfStockError,
    ValidationError,
)
from gamiapi.main import create_app
from gamiapi.models.rewards import RedemptionStatusEnum
from gamiapi.schemas.achievements import (
    AchievementProgress,
    AchievementProgressResponse,
    UnlockedAchievement,
)
from gamiapi.schemas.ledger import (
    AwardResult,
    LeaderboardEntry,
    LeaderboardResponse,
    LedgerDetailResponse,
    LedgerResponse,
    LevelProgress,
    PointTransactionResponse,
)
from gamiapi.schemas.rewards import (
    RedemptionResponse,
    RedemptionResult,
    RewardCatalogItem,
    RewardCatalogResponse,
)

NOW = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def app():
    """테스트 앱 - 서비스는 Mock 으로 교체"""
    app = create_app()
    yield app
    app.container.unwire()


@pytest.fixture
def client(app):
    return TestClient(app)


def override(app, name):
    mock = Mock()
    getattr(app.container.services, name).override(providers.Object(mock))
    return mock


def sample_ledger(**overrides):
    data = dict(
        employee_id=1,
        points=250,
        coins=25,
        experience=250,
        level=3,
        rank="Bronze",
        lifetime_points=250,
        lifetime_coins=25,
    )
    data.update(overrides)
    return LedgerResponse(**data)


class TestLedgerRoutes:
    """원장 라우터 테스트"""

    def test_get_ledger(self, app, client):
        # Given
        service = override(app, "ledger_service")
        service.get_ledger.return_value = LedgerDetailResponse(
            **sample_ledger().model_dump(),
            progress=LevelProgress(
                level=3,
                current_level_experience=50,
                experience_to_next_level=50,
                percentage=50,
            ),
            leaderboard_rank=1,
        )

        # When
        response = client.get("/api/v1/ledger/1")

        # Then
        assert response.status_code == 200
        data = response.json()
        assert data["rank"] == "Bronze"
        assert data["progress"]["percentage"] == 50
        service.get_ledger.assert_called_once_with(1)

    def test_get_ledger_not_found(self, app, client):
        service = override(app, "ledger_service")
        service.get_ledger.side_effect = NotFoundError("Ledger not found for employee: 7")

        response = client.get("/api/v1/ledger/7")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND_001"

    def test_leaderboard(self, app, client):
        service = override(app, "ledger_service")
        service.get_leaderboard.return_value = LeaderboardResponse(
            entries=[
                LeaderboardEntry(
                    position=1, employee_id=2, name="B", points=80, level=1, rank="Beginner"
                )
            ],
            total_count=1,
        )

        response = client.get("/api/v1/leaderboard?limit=5")

        assert response.status_code == 200
        assert response.json()["entries"][0]["employee_id"] == 2
        service.get_leaderboard.assert_called_once_with(limit=5, offset=0)


class TestAwardRoutes:
    """지급 라우터 테스트"""

    def test_award_points(self, app, client):
        # Given
        service = override(app, "award_service")
        service.award_points.return_value = AwardResult(
            ledger=sample_ledger(),
            transaction=PointTransactionResponse(
                id=1,
                employee_id=1,
                amount=250,
                requested_amount=250,
                type="earned",
                description="task",
                created_at=NOW,
            ),
            coins_earned=25,
            unlocked_achievements=[
                UnlockedAchievement(achievement_id=3, name="First 100", points=50, coins=5)
            ],
        )

        # When
        response = client.post(
            "/api/v1/awards/1/points",
            json={"points": 250, "type": "earned", "description": "task"},
        )

        # Then
        assert response.status_code == 200
        data = response.json()
        assert data["coins_earned"] == 25
        assert data["unlocked_achievements"][0]["name"] == "First 100"
        service.award_points.assert_called_once_with(1, 250, "earned", "task", None)

    def test_award_validation_error(self, app, client):
        service = override(app, "award_service")
        service.award_points.side_effect = ValidationError("Award amount must not be zero")

        response = client.post(
            "/api/v1/awards/1/points",
            json={"points": 0, "type": "earned", "description": "nothing"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_001"

    def test_award_missing_body_field(self, app, client):
        override(app, "award_service")

        response = client.post("/api/v1/awards/1/points", json={"points": 10})

        assert response.status_code == 422


class TestAchievementRoutes:
    """업적 라우터 테스트"""

    def test_employee_progress(self, app, client):
        service = override(app, "achievement_service")
        service.list_achievements_with_progress.return_value = AchievementProgressResponse(
            employee_id=1,
            achievements=[
                AchievementProgress(
                    id=3,
                    name="First 100",
                    description="Reach 100 points",
                    points=50,
                    coins=5,
                    category="MILESTONE",
                    is_active=True,
                    criteria={"type": "points", "threshold": 100},
                    unlocked=False,
                    progress=40,
                )
            ],
            unlocked_count=0,
            total_count=1,
        )

        response = client.get("/api/v1/achievements/employees/1")

        assert response.status_code == 200
        assert response.json()["achievements"][0]["progress"] == 40

    def test_create_rejects_unknown_criteria(self, app, client):
        service = override(app, "achievement_service")

        response = client.post(
            "/api/v1/achievements",
            json={
                "name": "Odd",
                "description": "odd",
                "category": "MILESTONE",
                "criteria": {"type": "mystery", "threshold": 1},
            },
        )

        assert response.status_code == 422
        service.create_achievement.assert_not_called()

    def test_duplicate_name(self, app, client):
        service = override(app, "achievement_service")
        service.create_achievement.side_effect = ConflictError(
            "Achievement name already exists: Odd", retryable=False
        )

        response = client.post(
            "/api/v1/achievements",
            json={
                "name": "Odd",
                "description": "odd",
                "category": "MILESTONE",
                "criteria": {"type": "points", "threshold": 1},
            },
        )

        assert response.status_code == 409
        assert response.json()["error"]["details"]["retryable"] is False


class TestRewardRoutes:
    """리워드 라우터 테스트"""

    def test_catalog(self, app, client):
        service = override(app, "reward_service")
        service.list_catalog.return_value = RewardCatalogResponse(
            employee_id=1,
            points=200,
            coins=20,
            rewards=[
                RewardCatalogItem(
                    id=1,
                    name="Coffee Voucher",
                    category="VOUCHER",
                    points_cost=150,
                    stock=50,
                    is_active=True,
                    in_stock=True,
                    affordable=True,
                )
            ],
            total_count=1,
        )

        response = client.get("/api/v1/rewards/catalog?employee_id=1")

        assert response.status_code == 200
        assert response.json()["rewards"][0]["affordable"] is True
        service.list_catalog.assert_called_once_with(employee_id=1, active_only=True)

    def test_redeem(self, app, client):
        service = override(app, "reward_service")
        service.redeem.return_value = RedemptionResult(
            redemption=RedemptionResponse(
                id=9,
                employee_id=1,
                reward_id=1,
                points_spent=150,
                coins_spent=0,
                status=RedemptionStatusEnum.PENDING,
                redeemed_at=NOW,
            ),
            points=50,
            coins=20,
            remaining_stock=49,
        )

        response = client.post("/api/v1/rewards/employees/1/redeem", json={"reward_id": 1})

        assert response.status_code == 200
        assert response.json()["redemption"]["status"] == "pending"
        service.redeem.assert_called_once_with(1, 1, None)

    @pytest.mark.parametrize(
        "error,status_code,code",
        [
            (OutOfStockError(), 409, "STOCK_001"),
            (InsufficientBalanceError(), 400, "BALANCE_001"),
            (ConflictError("Concurrent redemption conflict, please retry"), 409, "CONFLICT_001"),
        ],
    )
    def test_redeem_errors(self, app, client, error, status_code, code):
        service = override(app, "reward_service")
        service.redeem.side_effect = error

        response = client.post("/api/v1/rewards/employees/1/redeem", json={"reward_id": 1})

        assert response.status_code == status_code
        assert response.json()["error"]["code"] == code


class TestHealth:
    def test_health(self, app, client):
        app.container.repositories.get_db.override(providers.Object(Mock()))

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
