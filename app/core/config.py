# app/core/config.py

from typing import Any, Optional
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
        env_file=os.path.join(BASE_DIR, '.env'),  # 프로젝트 루트의 .env 파일
        env_file_encoding='utf-8',
        extra='ignore',                      # 모델에 없는 변수는 무시
        case_sensitive=True
    )

    # --- 애플리케이션 기본 설정 ---
    APP_NAME: str = "QLMTS FastAPI API"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Quality Lab Management & Test System (QLMTS) API"
    APP_ENV: str = Field("development", description="Application environment (e.g., development, production, testing)")
    DEBUG_MODE: bool = Field(False, description="Enable debug mode for SQL echo and verbose logging")

    # --- 로깅 설정 ---
    LOG_LEVEL: str = Field("INFO", description="Root log level (DEBUG, INFO, WARNING, ...)")
    LOG_FORMAT: str = Field("text", description="Log output format: 'json' or 'text'")

    # --- 데이터베이스 설정 ---
    DATABASE_URL: SecretStr = Field(..., description="SQLAlchemy async database URL (postgresql+asyncpg://...)")

    # --- JWT (JSON Web Token) 설정 ---
    SECRET_KEY: SecretStr = Field(..., description="Secret key for JWT token signing. Keep this highly secure!")
    ALGORITHM: str = Field("HS256", description="Algorithm used for JWT signing (e.g., HS256)")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30, description="Access token expiration time in minutes")

    # --- CORS ---
    FRONTEND_URL: Optional[str] = Field(None, description="Allowed CORS origin. Any origin when unset.")

    # --- ARQ (Redis) 작업 큐 ---
    REDIS_HOST: str = Field("localhost", description="Redis host for the ARQ queue")
    REDIS_PORT: int = Field(6379, description="Redis port for the ARQ queue")

    # --- 파일 저장 설정 ---
    UPLOAD_DIR: str = Field("/app/data/uploads", description="Root directory for generated report files.")

    # --- 보고서 자동화 설정 ---
    REPORT_VERIFICATION_URL: str = Field("https://reports.example.com/verify", description="Base URL encoded in report QR codes")
    REPORT_PLANT_CODE: str = Field("PUNE", description="Plant prefix of generated report numbers")
    REPORT_JOB_MAX_TRIES: int = Field(3, description="Maximum tries of a report generation job")
    REPORT_JOB_BACKOFF_SECONDS: int = Field(2, description="Base delay of the exponential retry backoff")

    def model_post_init(self, __context: Any) -> None:  # noqa: ANN001
        # 개발 환경에서 UPLOAD_DIR이 기본값이면 프로젝트 내부 경로로 변경
        if self.APP_ENV == "development" and self.UPLOAD_DIR == "/app/data/uploads":
            self.UPLOAD_DIR = os.path.join(BASE_DIR, "data", "uploads")

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.get_secret_value().startswith("sqlite")


settings = Settings()
