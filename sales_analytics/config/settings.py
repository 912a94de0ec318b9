"""
Sales Analytics
Centralized Configuration Management

Pydantic settings with environment variable support for the data source,
reporting evaluation date, logging and input data quality checks.
"""

from datetime import date
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL warehouse holding the gold star schema"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="DataWarehouseAnalytics", alias="database", description="Database name")
    user: str = Field(default="analytics", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    pool_size: int = Field(default=5, description="Connection pool size")
    echo: bool = Field(default=False, description="Echo SQL queries")

    @property
    def sync_url(self) -> str:
        """Sync database URL for psycopg2"""
        return f"postgresql+psycopg2://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class DataSourceSettings(BaseSettings):
    """Where the three record sets are read from"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    backend: str = Field(default="file", description="Data source backend: file or database")
    path: str = Field(default="./data/sample", description="Directory holding the record set files")
    file_format: str = Field(default="csv", description="File format: csv, jsonl or parquet")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        allowed = ["file", "database"]
        if v.lower() not in allowed:
            raise ValueError(f"Data backend must be one of: {allowed}")
        return v.lower()


class ReportingSettings(BaseSettings):
    """Report evaluation parameters"""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    # Pins "now" for age and recency so reports are reproducible
    reference_date: Optional[date] = Field(default=None, description="Evaluation date for the customer report")


class SecuritySettings(BaseSettings):
    """API access configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8088"],
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Logging and metrics configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    enable_metrics: bool = Field(default=True, alias="ENABLE_METRICS", description="Expose /metrics")


class DataQualitySettings(BaseSettings):
    """Input data quality configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    enable_data_quality_checks: bool = Field(
        default=True,
        alias="ENABLE_DATA_QUALITY_CHECKS",
        description="Validate record sets before building reports"
    )
    data_quality_strict: bool = Field(
        default=False,
        alias="DATA_QUALITY_STRICT",
        description="Refuse to build reports from record sets failing validation"
    )


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="sales-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")
    api_workers: int = Field(default=1, alias="API_WORKERS", description="API workers")

    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    data_source: DataSourceSettings = Field(default_factory=DataSourceSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    data_quality: DataQualitySettings = Field(default_factory=DataQualitySettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
