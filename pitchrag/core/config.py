# File: pitchrag/core/config.py
import sys
import logging
from typing import List, Optional
from pydantic import Field, field_validator, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env', env_prefix='PITCHRAG_', env_file_encoding='utf-8',
        case_sensitive=False, extra='ignore'
    )

    PROJECT_NAME: str = "PitchRAG Document Service"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # --- Chunking ---
    CHUNK_SIZE: int = Field(default=1000, gt=0, description="Maximum characters per chunk (sentence overflow allowed).")
    SUPPORTED_CONTENT_TYPES: List[str] = [
        "text/plain",
        "text/markdown",
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
    ]

    # --- Uploads ---
    UPLOAD_DIR: str = "./uploads"
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024

    # --- Embeddings ---
    EMBEDDING_PROVIDER: str = Field(default="openai", description="'openai' (SDK) or 'http' (remote embedding service).")
    OPENAI_API_KEY: SecretStr = Field(default=SecretStr(""), description="OpenAI API key.")
    OPENAI_API_BASE: Optional[str] = None
    OPENAI_EMBEDDING_MODEL_NAME: str = "text-embedding-3-large"
    EMBEDDING_DIMENSION: int = 3072
    OPENAI_TIMEOUT_SECONDS: int = 30
    EMBEDDING_SERVICE_URL: str = "http://embedding-service:8003/api/v1/embed"
    HTTP_CLIENT_TIMEOUT: int = 60
    EMBEDDING_BATCH_SIZE: int = Field(default=64, gt=0)
    EMBEDDING_MAX_CONCURRENCY: int = Field(default=4, gt=0)
    EMBEDDING_MAX_ATTEMPTS: int = Field(default=3, gt=0)
    EMBEDDING_BACKOFF_MULTIPLIER: float = 0.5
    EMBEDDING_BACKOFF_MAX_SECONDS: float = 8.0

    # --- Generation / retrieval ---
    OPENAI_CHAT_MODEL_NAME: str = "gpt-4o"
    GENERATION_TEMPERATURE: float = 0.3
    GENERATION_MAX_TOKENS: int = 1000
    RETRIEVAL_TOP_K: int = 5
    DEFAULT_LINK_TOKEN_LIMIT: int = 1000

    # --- PostgreSQL ---
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = SecretStr("postgres")
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "pitchrag"

    # --- Celery ---
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    @field_validator("LOG_LEVEL")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        normalized_v = v.upper()
        if normalized_v not in valid_levels:
            raise ValueError(f"Invalid LOG_LEVEL '{v}'. Must be one of {valid_levels}")
        return normalized_v

    @field_validator("EMBEDDING_PROVIDER")
    @classmethod
    def check_embedding_provider(cls, v: str) -> str:
        normalized_v = v.lower()
        if normalized_v not in ("openai", "http"):
            raise ValueError(f"Invalid EMBEDDING_PROVIDER '{v}'. Must be 'openai' or 'http'")
        return normalized_v

    @property
    def postgres_async_dsn(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

# Bootstrap logger used only while settings load
temp_log_config = logging.getLogger("pitchrag.config.loader")
if not temp_log_config.handlers:
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter('%(levelname)-8s [%(name)s] %(message)s')
    handler.setFormatter(formatter)
    temp_log_config.addHandler(handler)
    temp_log_config.setLevel(logging.INFO)

try:
    temp_log_config.info("Loading PitchRAG settings...")
    settings = Settings()
    temp_log_config.info("--- PitchRAG Settings Loaded ---")
    temp_log_config.info(f"  PROJECT_NAME: {settings.PROJECT_NAME}")
    temp_log_config.info(f"  LOG_LEVEL: {settings.LOG_LEVEL}")
    temp_log_config.info(f"  CHUNK_SIZE: {settings.CHUNK_SIZE}")
    temp_log_config.info(f"  EMBEDDING_PROVIDER: {settings.EMBEDDING_PROVIDER}")
    temp_log_config.info(f"  EMBEDDING_DIMENSION: {settings.EMBEDDING_DIMENSION}")
    temp_log_config.info(f"  POSTGRES_SERVER: {settings.POSTGRES_SERVER}:{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}")
    temp_log_config.info("--------------------------------")
except ValidationError as e:
    temp_log_config.critical(f"FATAL: PitchRAG configuration validation failed:\n{e}")
    sys.exit(1)
