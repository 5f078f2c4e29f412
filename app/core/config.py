from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Sewing Store API"
    DATABASE_URL: str = "sqlite:///./sewing_store.db"
    SECRET_KEY: str = "supersecretkey_change_me_in_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7 # 1 week

    LOG_LEVEL: str = "INFO"

    # SQLite only: seconds a connection waits on a locked database
    SQLITE_BUSY_TIMEOUT: float = 30.0
    # SQLite only: start every transaction with BEGIN IMMEDIATE
    SQLITE_IMMEDIATE_TRANSACTIONS: bool = True

    # Checkout transaction retries on lock / serialization failures
    CHECKOUT_MAX_ATTEMPTS: int = 5
    CHECKOUT_RETRY_BACKOFF: float = 0.05

    # Catalog pagination
    PRODUCTS_PAGE_SIZE: int = 12
    PRODUCTS_MAX_PAGE_SIZE: int = 100

    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
