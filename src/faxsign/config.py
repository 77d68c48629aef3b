from functools import lru_cache
from typing import List

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class SeedAccount(BaseModel):
    username: str
    email: str
    password: str
    full_name: str
    role: str
    department: str | None = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FAXSIGN_", env_file=".env", extra="ignore")

    app_name: str = "FaxSign"
    app_description: str = "Fax Signature Management System"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./faxsign.db"

    # Tokens
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60

    # Uploads
    upload_dir: str = "uploads"
    max_file_size: int = 10 * 1024 * 1024
    allowed_content_types: List[str] = [
        "application/pdf",
        "image/jpeg",
        "image/png",
        "image/tiff",
    ]

    cors_origins: List[str] = ["*"]

    # Bootstrap data
    seed_defaults: bool = True
    default_departments: List[str] = ["Faxes", "HR", "Finance"]
    default_accounts: List[SeedAccount] = [
        SeedAccount(username="admin", email="admin@company.com", password="admin123",
                    full_name="System Administrator", role="admin"),
        SeedAccount(username="manager1", email="manager1@company.com", password="manager123",
                    full_name="Fax Manager One", role="manager"),
        SeedAccount(username="manager2", email="manager2@company.com", password="manager123",
                    full_name="Fax Manager Two", role="manager"),
        SeedAccount(username="manager3", email="manager3@company.com", password="manager123",
                    full_name="Fax Manager Three", role="manager"),
        SeedAccount(username="faxuser", email="fax@company.com", password="fax123",
                    full_name="Fax Upload User", role="fax_intake", department="Faxes"),
    ]


@lru_cache
def get_settings() -> Settings:
    return Settings()
