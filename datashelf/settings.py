"""Settings for the application."""
import enum
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL


class LogLevel(str, enum.Enum):  # noqa: WPS600
    """Possible log levels."""

    NOTSET = "NOTSET"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    FATAL = "FATAL"


class Settings(BaseSettings):
    """
    Application settings.

    These parameters can be configured
    with environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DATASHELF_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 8000
    # quantity of workers for uvicorn
    workers_count: int = 1
    # Enable uvicorn reloading
    reload: bool = False

    # Current environment
    environment: str = "dev"
    log_level: LogLevel = LogLevel.INFO

    # Variables for the database
    db_host: str = "datashelf-db"
    db_port: int = 5432
    db_user: str = "datashelf"
    db_pass: str = ""
    db_base: str = "datashelf"
    db_echo: bool = False
    # Full URL, takes precedence over the db_* parts (e.g. sqlite for tests)
    database_url: Optional[str] = None

    # JWT
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_audience: str = ""
    jwt_issuer: str = ""

    # Service-to-service callbacks
    x_api_key: str = ""
    service_user_id: str = "service"

    # Object storage
    s3_region: str = "us-east-2"
    s3_endpoint_url: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None

    upload_bucket: str = "datashelf-datasets-queue"
    append_bucket: str = "datashelf-datasets-appends"
    preview_bucket: str = "datashelf-upload-previews"
    datasets_bucket: str = "datashelf-datasets"

    upload_content_type_prefix: str = "text/"
    upload_url_ttl: int = 3600
    append_url_ttl: int = 30
    preview_url_ttl: int = 30
    download_url_ttl: int = 300

    # Downstream processing service
    processing_service_url: str = "http://localhost:5000"
    processing_timeout: float = 10.0

    @property
    def db_url(self) -> str:
        """
        Assemble database URL from settings.

        :return: database URL.
        """
        if self.database_url:
            return self.database_url
        return str(URL.build(
            scheme="postgresql+asyncpg",
            host=self.db_host,
            port=self.db_port,
            user=self.db_user,
            password=self.db_pass,
            path=f"/{self.db_base}",
        ))


settings = Settings()
