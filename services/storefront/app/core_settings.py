from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache
from decimal import Decimal
from typing import Optional

ORDER_NUMBER_PREFIX_MAX_LENGTH = 12

class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "storefront"
    POSTGRES_USER: str = "storefront"
    POSTGRES_PASSWORD: str = "storefront"
    # Full SQLAlchemy URL, takes precedence over the POSTGRES_* parts
    DATABASE_URL: Optional[str] = None
    RUN_MIGRATIONS_ON_STARTUP: bool = True

    # Storefront sessions (cart + checkout draft)
    REDIS_URL: Optional[str] = None
    SESSION_TTL_SECONDS: int = 60 * 60 * 24
    SESSION_MAX_ENTRIES: int = 10000

    # Pricing rules
    FREE_SHIPPING_THRESHOLD: Decimal = Decimal("50")
    FLAT_SHIPPING_RATE: Decimal = Decimal("4.99")
    TAX_RATE: Decimal = Decimal("0.10")

    # orders.order_number is String(50): prefix + "-YYYY-" + 32 hex chars
    ORDER_NUMBER_PREFIX: str = Field(default="ORD", min_length=1, max_length=ORDER_NUMBER_PREFIX_MAX_LENGTH)
    DEFAULT_CURRENCY_CODE: str = "USD"
    CUSTOMER_DEDUP_BY_EMAIL: bool = True

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

@lru_cache
def get_settings() -> Settings:
    return Settings()
