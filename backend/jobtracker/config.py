from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/tracker.db"
    secret_key: str = "dev-secret-key-change-in-production"
    session_expire_days: int = 30
    frontend_url: str = "http://localhost:5173"
    api_url: str = "http://localhost:8000"
    cors_origins: list[str] = ["http://localhost:5173"]

    # File storage (avatars, resumes)
    storage_root: str = "./data/storage"
    signed_url_ttl_seconds: int = 3600

    # OAuth identity providers
    github_client_id: str = ""
    github_client_secret: str = ""
    google_client_id: str = ""
    google_client_secret: str = ""

    # Job search providers
    serpapi_key: str = ""
    adzuna_app_id: str = ""
    adzuna_api_key: str = ""
    adzuna_country: str = "gb"

    # Resume text extraction + generation
    pdfco_api_key: str = ""
    huggingface_api_key: str = ""
    huggingface_model: str = "mistralai/Mistral-7B-Instruct-v0.2"
    cold_start_default_wait: float = 20.0

    # Match scoring
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    reminder_interval_minutes: int = 60

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
