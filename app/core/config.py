# app/core/config.py

from typing import List
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
import os

# 프로젝트의 루트 디렉토리 경로를 계산합니다.
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class Settings(BaseSettings):
    """
    애플리케이션의 모든 설정을 정의하는 Pydantic BaseSettings 모델입니다.
    환경 변수 및 .env 파일에서 값을 자동으로 로드합니다.
    """

    # --- Pydantic Settings 설정 ---
    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, '.env'),  # 프로젝트 루트의 .env 파일을 명시적으로 지정
        env_file_encoding='utf-8',
        extra='ignore',                      # .env 파일에 정의되었지만 모델에 없는 변수는 무시
        case_sensitive=True
    )

    # --- 애플리케이션 기본 설정 ---
    APP_NAME: str = "Cidery Production API"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Cidery production management API (press runs, cellar, carbonation, packaging, inventory)"
    APP_ENV: str = Field("development", description="Application environment (e.g., development, production, testing)")
    DEBUG_MODE: bool = Field(False, description="Enable debug mode for detailed logging and error messages")
    CORS_ORIGINS: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # --- 데이터베이스 설정 ---
    DATABASE_URL: SecretStr = Field(..., description="Database connection URL (postgresql+asyncpg://...)")

    # --- JWT (JSON Web Token) 설정 ---
    SECRET_KEY: SecretStr = Field(..., description="Secret key for JWT token signing. Keep this highly secure!")
    ALGORITHM: str = Field("HS256", description="Algorithm used for JWT signing (e.g., HS256)")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30, description="Access token expiration time in minutes")

    # --- ARQ (Redis) 설정 ---
    REDIS_HOST: str = Field("localhost", description="Redis host for the ARQ worker queue")
    REDIS_PORT: int = Field(6379, description="Redis port for the ARQ worker queue")

    # --- 셀러 / 패키징 운영 설정 ---
    # 이송·패키징 후 용기에 남은 잔량이 이 값(L) 미만이면 손실로 처리하고 용기를 비웁니다.
    RESIDUAL_VOLUME_THRESHOLD_L: float = Field(1.0, ge=0, description="Residual volume (L) below which a vessel is treated as empty")
    DEFAULT_VESSEL_MAX_PRESSURE_PSI: float = Field(30.0, gt=0, description="Max pressure assumed for vessels without a rating")
    INVENTORY_SHELF_LIFE_DAYS: int = Field(365, ge=1, description="Shelf life applied to packaged inventory items")
    LOW_STOCK_THRESHOLD: int = Field(24, ge=0, description="Minimum units before an inventory item is reported as low stock")

    # --- 원가(COGS) 설정 ---
    DEFAULT_LABOR_RATE: float = Field(20.0, ge=0, description="Labor cost per hour when a press run has no rate")
    OVERHEAD_RATE_PER_L: float = Field(0.5, ge=0, description="Overhead cost allocated per liter")
    PACKAGING_COST_PER_UNIT: float = Field(0.35, ge=0, description="Packaging material cost per packaged unit")

    # --- 감사 로그 설정 ---
    AUDIT_RETENTION_DAYS: int = Field(365, ge=1, description="Days to keep audit log rows before cleanup")


settings = Settings()
