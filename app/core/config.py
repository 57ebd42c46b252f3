from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET: str
    JWT_ALGO: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # balances within this many currency units of zero count as settled
    SETTLEMENT_EPSILON: float = 0.01
    SORTED_TRANSFER_MATCHING: bool = True

    DB_CONNECT_RETRIES: int = 5

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
