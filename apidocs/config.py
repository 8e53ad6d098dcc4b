"""
App config loaded from environment and .env via Pydantic Settings.
"""
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_TITLE = "API Documentation"
DEFAULT_VERSION = "v1.0"
DEFAULT_SERVER_URL = "https://api.example.com"
DEFAULT_TAG = "General"
DEFAULT_ASSISTANT_MODEL = "gpt-4o"


class Settings(BaseSettings):
    # Settings from environment (APIDOCS_*) and .env.

    model_config = SettingsConfigDict(
        env_prefix="APIDOCS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_title: str = DEFAULT_TITLE
    default_version: str = DEFAULT_VERSION
    default_server_url: str = DEFAULT_SERVER_URL
    default_tag: str = DEFAULT_TAG
    max_schema_depth: int = 32

    assistant_url: str | None = None
    assistant_model: str = DEFAULT_ASSISTANT_MODEL
    request_timeout: float = 30.0

    default_document_url: str | None = None
    default_document_path: str | None = None
    allowed_try_it_origins: Annotated[list[str], NoDecode] = []

    @field_validator("allowed_try_it_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v: str | list[str] | None) -> list[str]:
        if v is None:
            return []
        if isinstance(v, list):
            return [x.strip().rstrip("/") for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return []
        return [x.strip().rstrip("/") for x in s.split(",") if x.strip()]


settings = Settings()
