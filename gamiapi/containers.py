from dependency_injector import containers, providers

from gamiapi.config import Settings
from gamiapi.database.session import get_db
from gamiapi.services.achievement_service import AchievementService
from gamiapi.services.award_service import AwardService
from gamiapi.services.ledger_service import LedgerService
from gamiapi.services.reward_service import RewardService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class RepositoryModule(containers.DeclarativeContainer):
    """Database session."""

    get_db = providers.Resource(get_db)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies."""

    config = providers.DependenciesContainer()
    repositories = providers.DependenciesContainer()

    ledger_service = providers.Factory(
        LedgerService, db=repositories.get_db, settings=config.config
    )
    achievement_service = providers.Factory(
        AchievementService, db=repositories.get_db, settings=config.config
    )
    award_service = providers.Factory(
        AwardService,
        db=repositories.get_db,
        settings=config.config,
        achievement_service=achievement_service,
    )
    reward_service = providers.Factory(
        RewardService, db=repositories.get_db, settings=config.config
    )


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "gamiapi.routers.health_router",
            "gamiapi.routers.ledger_router",
            "gamiapi.routers.award_router",
            "gamiapi.routers.achievement_router",
            "gamiapi.routers.reward_router",
            "gamiapi.routers.leaderboard_router",
        ],
    )

    config = providers.Container(ConfigModule)
    repositories = providers.Container(RepositoryModule)
    services = providers.Container(
        ServiceModule, config=config, repositories=repositories
    )
