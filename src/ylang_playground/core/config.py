"""Application settings for the playground and its compiler backend."""

import json
import os
from functools import lru_cache
from urllib.parse import urlparse

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ylang_playground.schemas.compiler import CompileTarget


DEFAULT_API_BASE_URL = "http://localhost:8080/api/v1"


def _parse_str_list(v: object, field_name: str) -> list[str]:
    if isinstance(v, list):
        return [str(i).strip() for i in v]
    if isinstance(v, str):
        s = v.strip()
        if not s:
            return []
        if s.startswith("["):
            try:
                parsed = json.loads(s)
            except json.JSONDecodeError as e:
                raise ValueError(
                    f"{field_name} must be a CSV list or JSON array string"
                ) from e
            if not isinstance(parsed, list):
                raise ValueError(f"{field_name} JSON must be a list")
            return [str(i).strip() for i in parsed]
        # CSV fallback
        return [i.strip() for i in s.split(",") if i.strip()]
    raise ValueError(f"Invalid {field_name} type; expected str or list[str]")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "Y Language Playground"
    ENVIRONMENT: str = "development"  # development | production | test

    # Remote compiler service
    YLANG_API_BASE_URL: str = DEFAULT_API_BASE_URL
    COMPILE_TIMEOUT_SECONDS: float = 10.0
    PROJECT_ID: str | None = None

    # Orchestration
    DEBOUNCE_INTERVAL_MS: int = 1000
    AUTO_COMPILE: bool = False
    # Accept list or CSV/JSON string from env; normalized to list[str] by validators
    COMPILE_TARGETS: list[str] | str = ["typescript", "rust"]

    # CORS for the browser display layer
    CORS_ORIGINS: list[str] | str = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("YLANG_API_BASE_URL")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        parsed = urlparse(v.strip())
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("YLANG_API_BASE_URL must be an absolute http(s) URL")
        return v.strip().rstrip("/")

    @field_validator("DEBOUNCE_INTERVAL_MS")
    @classmethod
    def validate_debounce_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("DEBOUNCE_INTERVAL_MS must be positive")
        return v

    @field_validator("COMPILE_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("COMPILE_TIMEOUT_SECONDS must be positive")
        return v

    @field_validator("COMPILE_TARGETS", mode="before")
    @classmethod
    def assemble_compile_targets(cls, v: object) -> list[str]:
        """Allow list, CSV string, or JSON array string for compile targets."""
        return [t.lower() for t in _parse_str_list(v, "COMPILE_TARGETS")]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: object) -> list[str]:
        """Allow list, CSV string, or JSON array string for CORS origins."""
        return _parse_str_list(v, "CORS_ORIGINS")

    @model_validator(mode="after")
    def _validate_targets(self) -> "Settings":
        """Ensure every configured target is one the compiler understands."""
        # Normalize in case the union allows a stray string at runtime
        if isinstance(self.COMPILE_TARGETS, str):
            self.COMPILE_TARGETS = self.assemble_compile_targets(self.COMPILE_TARGETS)
        if isinstance(self.CORS_ORIGINS, str):
            self.CORS_ORIGINS = self.assemble_cors_origins(self.CORS_ORIGINS)
        known = {t.value for t in CompileTarget}
        unknown = [t for t in self.COMPILE_TARGETS if t not in known]
        if unknown:
            raise ValueError(
                f"COMPILE_TARGETS contains unsupported targets: {', '.join(unknown)}"
            )
        if not self.COMPILE_TARGETS:
            raise ValueError("COMPILE_TARGETS must name at least one target")
        return self

    @property
    def debounce_interval_seconds(self) -> float:
        return self.DEBOUNCE_INTERVAL_MS / 1000.0


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in {"development", "production", "test"}:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    if env == "production":
        env_file = ".env.prod"
    elif env == "development":
        env_file = ".env.dev"
    else:
        # test environment - no env file needed, use defaults
        env_file = ""

    # pydantic-settings accepts a runtime-only `_env_file` kwarg; mypy's stub
    # doesn't allow this call argument.
    return Settings(_env_file=env_file or None)  # type: ignore[call-arg]
