from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+psycopg2://gradebook:gradebook@db:5432/gradebook"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # Async queue (optional)
    ASYNC_QUEUE_ENABLED: bool = False
    REDIS_URL: str = "redis://redis:6379/0"
    RQ_QUEUE_NAME: str = "gradebook"
    RQ_JOB_TIMEOUT_SECONDS: int = 1800
    RQ_JOB_RETRY_MAX: int = 1

    # Auth
    JWT_SECRET: str = "changethis"  # Should be changed in .env
    JWT_EXPIRES_SECONDS: int = 3600  # 1 hour

    # Grade computation
    GRADEBOOK_BATCH_SIZE: int = 50
    GRADEBOOK_BATCH_DELAY_SECONDS: float = 0.1
    # Threads per batch, one pooled connection each; keep <= DB_POOL_SIZE + DB_MAX_OVERFLOW
    GRADEBOOK_MAX_WORKERS: int = 8
    DEFAULT_PASSING_PERCENTAGE: float = 50.0

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
