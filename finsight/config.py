"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from FINSIGHT_* environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="FINSIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///finsight.db"

    # Service
    service_name: str = "finsight"
    log_level: str = "INFO"

    # Signal windows (days)
    default_window_days: int = 90
    expense_window_days: int = 180
    payroll_lookback_days: int = 180

    # Persona classification
    income_percentile: int = 75

    # Debt payoff
    payoff_safety_buffer: float = 0.2
    max_payoff_months: int = 600

    # Recommendations
    recommendation_limit: int = 5
    cache_ttl_hours: float = 1.0


settings = Settings()
