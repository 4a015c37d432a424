from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    # Application
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    log_level: str = "INFO"
    api_key: str = ""  # Empty disables X-API-Key enforcement

    # Storj (S3-compatible gateway). Validated by the storage adapter so that
    # importing settings never fails; a missing value aborts startup there.
    storj_access_key: Optional[str] = None
    storj_secret_key: Optional[str] = None
    storj_endpoint: Optional[str] = None
    storj_bucket: Optional[str] = None
    storj_region: str = "us-east-1"  # Storj ignores region but botocore needs one

    # Observability
    otel_exporter: str = "none"
    otel_service_name: str = "storj-bucket-versioning"
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"

settings = Settings()
