"""
Configuration for nestcheck

Settings are read from environment variables once, validated by pydantic,
and passed explicitly into the components built at start-up.

Environment variables:
    NESTCHECK_RECURSION_LIMIT: Maximum rule set / subject nesting depth (default 10)
    NESTCHECK_ENUM_DOMAIN: equatable | equatable_nullable | scalar | scalar_nullable
    NESTCHECK_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR | CRITICAL (falls back to LOG_LEVEL)
    NESTCHECK_LOG_FORMAT: json | text
    NESTCHECK_RECORD_TRUNCATE: Maximum length of recorded string subjects (default 40)
"""
import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from nestcheck.core.types import EnumDomain

ENV_PREFIX = "NESTCHECK_"

LOG_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class NestcheckSettings(BaseModel):
    """
    Validated nestcheck configuration.

    Attributes:
        recursion_limit: Maximum depth of rule sets at build time, and of challenged nodes
        enum_domain: Scalar domain of the default rule provider's enum rule
        log_level: Log level name
        log_format: "json" or "text"
        record_truncate: Maximum length of string subjects in failure records
    """

    recursion_limit: int = Field(10, ge=1, le=1000)
    enum_domain: EnumDomain = EnumDomain.SCALAR_NULLABLE
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    record_truncate: int = Field(40, ge=1)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "recursion_limit": 10,
                "enum_domain": "scalar_nullable",
                "log_level": "INFO",
                "log_format": "json",
                "record_truncate": 40,
            }
        }

    @field_validator("enum_domain", mode="before")
    @classmethod
    def lower_enum_domain(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v):
        """Validate that log_level names a logging level."""
        level = v.upper()
        if level not in LOG_LEVEL_NAMES:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVEL_NAMES)}, got {v}")
        return level

    @field_validator("log_format", mode="before")
    @classmethod
    def lower_log_format(cls, v):
        return v.lower() if isinstance(v, str) else v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "NestcheckSettings":
        """
        Read settings from environment variables.

        Args:
            environ: Variables to read (default: os.environ)

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field in cls.model_fields:
            value = environ.get(f"{ENV_PREFIX}{field.upper()}")
            if value is not None and value != "":
                values[field] = value
        if "log_level" not in values and environ.get("LOG_LEVEL"):
            values["log_level"] = environ["LOG_LEVEL"]
        return cls(**values)


_settings: NestcheckSettings | None = None


def get_settings() -> NestcheckSettings:
    """
    Get settings read from the environment, once per process.

    Returns:
        NestcheckSettings instance
    """
    global _settings
    if _settings is None:
        _settings = NestcheckSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings, so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
