## app/core/config.py

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the application
    """

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", case_sensitive=False
    )

    environment: str = "development"
    allowed_cors_urls: str = "http://localhost:3000"

    log_level: str = "INFO"
    log_file: Optional[str] = None

    # An explicit async URL wins over the discrete MySQL settings
    database_url: Optional[str] = None
    db_host: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_database: Optional[str] = None
    db_port: int = 3306

    # database: remote only, local: JSON file only, auto: remote with local fallback
    storage_mode: Literal["database", "local", "auto"] = "auto"
    local_store_path: str = "data/actas.json"
    auto_create_tables: bool = False

    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    aws_ses_sender_email: Optional[str] = None
    aws_ses_sender_name: str = "Sistema de Actas"
    aws_ses_configuration_set: Optional[str] = None
    s3_bucket_name: Optional[str] = None
    # Lifetime of the presigned links handed out when an acta is read
    signature_url_expiration: int = 3600

    app_base_url: str = "http://localhost:3000"

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7

    common_date_format: str = "%d/%m/%Y"

    @property
    def async_db_url(self) -> str:
        """
        Async database URL
        """
        if self.database_url:
            return self.database_url
        if self.db_host:
            return f"mysql+asyncmy://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_database}"
        return "sqlite+aiosqlite:///./actas.db"

    @property
    def db_url(self) -> str:
        """
        Sync database URL, used by migrations and seeding scripts
        """
        return (
            self.async_db_url
            .replace("+asyncmy", "+pymysql")
            .replace("+aiosqlite", "")
        )

    @property
    def is_production(self) -> bool:
        """
        Whether the app runs in production
        """
        return self.environment.lower() == "production"


settings = Settings()
