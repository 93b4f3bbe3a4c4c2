from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Crypto Dashboard API"
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    environment: str = "production"

    coingecko_base: str = "https://api.coingecko.com/api/v3"
    cg_demo_key: str | None = None
    currency_api_url: str = "https://api.exchangerate-api.com/v4/latest"

    request_timeout_seconds: float = 5
    history_request_timeout_seconds: float = 3
    history_request_pause_seconds: float = 0.1

    coins_ttl_seconds: int = 30
    coins_list_ttl_seconds: int = 86400
    chart_ttl_seconds: int = 300
    cache_ttl: int = 3600
    history_ttl_seconds: int = 3600

    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == "development"


settings = Settings()
