"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Config comes from FILE_API_* env vars or a .env file."""

    database_url: str = "sqlite:///./files.db"
    upload_dir: str = "uploads"
    max_upload_bytes: int = 50 * 1024 * 1024  # 50 MB

    # Zero-row rename/delete answers 404 instead of success when enabled
    strict_ownership: bool = False

    log_dir: str = "logs"
    log_level: str = "INFO"

    class Config:
        env_prefix = "FILE_API_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
