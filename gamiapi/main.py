import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from gamiapi import containers
from gamiapi.config import settings
from gamiapi.core.exception_handlers import register_exception_handlers
from gamiapi.core.logging_middleware import LoggingMiddleware
from gamiapi.logging_config import setup_logging
from gamiapi.routers import (
    achievement_router,
    award_router,
    health_router,
    leaderboard_router,
    ledger_router,
    reward_router,
)

load_dotenv("gamiapi/.env")
setup_logging(settings.LOG_LEVEL, sql_echo=settings.DEBUG)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, debug=settings.DEBUG)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    register_exception_handlers(app)

    @app.get("/")
    def hello() -> dict:
        return {"message": f"{settings.APP_NAME} is running"}

    app.include_router(health_router.router)
    for module in (
        ledger_router,
        award_router,
        achievement_router,
        reward_router,
        leaderboard_router,
    ):
        app.include_router(module.router, prefix=settings.API_V1_STR)

    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    return app


app = create_app()

handler = Mangum(app)
