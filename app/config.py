from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./hotel_booking.db"

    # Tokens are issued by the auth service, we only verify them
    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL_SECONDS: int = 3600

    # The discount expiry sweep runs once an hour
    DISCOUNT_SWEEP_INTERVAL_SECONDS: int = 3600

    RATE_LIMIT_ENABLED: bool = True

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
