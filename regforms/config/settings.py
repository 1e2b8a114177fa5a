from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "registration"
    db_username: str = "postgres"
    db_password: str = "postgres"
    db_pool_max_size: int = 20

    generated_dir: Path = Path("generated")
    templates_dir: Path = Path("templates")
    reference_prefix: str = "REG"
    document_page_size: int = 20

    dolibarr_enabled: bool = False
    dolibarr_api_url: str = "http://192.168.20.47/api/index.php"
    dolibarr_api_key: str = ""
    dolibarr_timeout_seconds: float = 10.0
