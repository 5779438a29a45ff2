from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Catalog provider
    NCS_BASE_URL: str = Field(default="https://ncs.io")
    REQUESTS_TIMEOUT: int = Field(default=10)

    # Server
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3001)
    LOG_LEVEL: str = Field(default="INFO")

    # Rate limit (e.g. '120/minute')
    RATE_LIMIT: str = Field(default="120/minute")
    METRICS_ENABLED: bool = Field(default=True)


settings = Settings()
