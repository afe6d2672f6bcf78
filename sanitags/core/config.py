"""
Library configuration from environment variables.
Only structural knobs live here; sanitize functions are registered in code.
"""
import re
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


_ANNOTATION_KEY_REGEX = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")


class Settings(BaseSettings):
    """Sanitags settings loaded from SANITAGS_* environment variables."""

    service_env: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Runtime environment; selects the default log level"
    )
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR"]] = Field(
        default=None,
        description="Explicit log level override (None = derive from service_env)"
    )
    annotation_key: str = Field(
        default="sanitize",
        description=(
            "Metadata key holding the policy name in pydantic json_schema_extra "
            "and dataclass field metadata"
        )
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Optional[str]) -> Optional[str]:
        """Accept lower-case level names; empty means unset."""
        if v is None or v == "":
            return None
        return v.upper()

    @field_validator("annotation_key", mode="after")
    @classmethod
    def validate_annotation_key(cls, v: str) -> str:
        """Reject keys that could never appear as a metadata key."""
        if not _ANNOTATION_KEY_REGEX.match(v):
            raise ValueError(
                f"Invalid SANITAGS_ANNOTATION_KEY {v!r}: expected an identifier-like key"
            )
        return v

    class Config:
        env_prefix = "SANITAGS_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
