from functools import lru_cache
from typing import Dict, Optional
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="gamiapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Gamification Ledger API"
    PROJECT_NAME: str = "Gamification Ledger API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = ""
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = ""
    POSTGRES_SCHEMA: str = "public"

    # 설정되어 있으면 POSTGRES_* 대신 그대로 사용 (로컬/테스트용 sqlite 등)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Timezone - 출결/생산성 기록을 달력 날짜로 정규화할 때 사용
    TIMEZONE: str = "Asia/Kolkata"

    # Progression
    EXPERIENCE_PER_LEVEL: int = 100  # 레벨당 필요 경험치
    POINTS_PER_BONUS_COIN: int = 10  # 포인트 10점당 보너스 코인 1개

    # Streak / 달성 조건 평가
    STREAK_MAX_GAP_DAYS: int = 1  # 연속 기록 사이 허용되는 최대 일수 차이
    STREAK_LOOKBACK_FACTOR: int = 2  # 조회 범위 = threshold * factor
    DEFAULT_MIN_PRODUCTIVITY: float = 80.0
    BREAK_COMPLIANT_MIN_MINUTES: int = 15
    BREAK_COMPLIANT_MAX_MINUTES: int = 60

    # Coins
    COIN_TO_CASH_RATE: int = 10  # 코인 1개 = 현금 10
    CASH_OUT_MIN_COINS: int = 100  # 현금 전환 최소 코인

    # 생산성 구간별 지급 포인트 (최소 퍼센트 -> 포인트), 높은 구간부터 평가
    PRODUCTIVITY_POINT_TIERS: Dict[int, int] = Field(
        default_factory=lambda: {90: 15, 75: 10, 60: 5}
    )
    # 업무일지 제출 보상 훅 - 기본 비활성 (제출 시스템이 호출만 해 둠)
    WORK_LOG_AWARDS_ENABLED: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
