"""
Runtime configuration for the Education Times Abroad backend.

Values come from environment variables (a local .env file is honoured).
Build a Settings object once and pass it to whatever needs it.
"""

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    database_url: Optional[str] = None
    database_name: Optional[str] = None

    # Operator inbox for new enquiry notifications
    admin_email: Optional[str] = None

    smtp_host: Optional[str] = None
    smtp_port: int = Field(587, ge=1, le=65535)
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    from_name: str = "Education Times Abroad"
    from_email: str = "no-reply@education-times-abroad.com"
    support_email: str = "support@education-times-abroad.com"

    environment: str = "development"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        smtp_user = os.getenv("SMTP_USER")
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            database_name=os.getenv("DATABASE_NAME"),
            admin_email=os.getenv("ADMIN_EMAIL"),
            smtp_host=os.getenv("SMTP_HOST"),
            smtp_port=int(os.getenv("SMTP_PORT", "587")),
            smtp_user=smtp_user,
            smtp_pass=os.getenv("SMTP_PASS"),
            from_name=os.getenv("FROM_NAME", "Education Times Abroad"),
            from_email=os.getenv("FROM_EMAIL") or smtp_user or "no-reply@education-times-abroad.com",
            support_email=os.getenv("SUPPORT_EMAIL", "support@education-times-abroad.com"),
            environment=os.getenv("ENVIRONMENT", "development"),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
