"""
OpenFalcon datasource configuration

Lookup order for load_config():
1. Explicit path argument
2. OPENFALCON_CONFIG environment variable
3. ./openfalcon.yaml (if exists)
4. Environment variables (OPENFALCON_URL, OPENFALCON_BASIC_AUTH, ...), .env honored
"""

import os
import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger("openfalcon.config")


class DatasourceConfig(BaseModel):
    """Immutable for the lifetime of a datasource instance."""

    model_config = ConfigDict(frozen=True)

    name: str = "openfalcon"
    url: str
    basic_auth: Optional[str] = None
    cache_timeout: Optional[Union[int, str]] = None
    render_method: str = "POST"
    # Request timeout in seconds
    timeout: int = 10
    verify_tls: bool = True
    # Zone used for absolute boundaries without an explicit offset
    timezone: str = "UTC"

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("render_method")
    @classmethod
    def _normalize_render_method(cls, v: str) -> str:
        # GET sends a query string, any other method a form body
        return (v or "POST").strip().upper()


def load_config_from(path: Union[str, Path]) -> DatasourceConfig:
    """Load datasource configuration from YAML file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return DatasourceConfig(**data)


def config_from_env() -> DatasourceConfig:
    """Build configuration from OPENFALCON_* environment variables."""
    load_dotenv()
    url = os.getenv("OPENFALCON_URL")
    if not url:
        raise ValueError("OPENFALCON_URL not found in environment variables")

    data = {"url": url}
    env_fields = {
        "OPENFALCON_NAME": "name",
        "OPENFALCON_BASIC_AUTH": "basic_auth",
        "OPENFALCON_RENDER_METHOD": "render_method",
        "OPENFALCON_CACHE_TIMEOUT": "cache_timeout",
        "OPENFALCON_TIMEZONE": "timezone",
    }
    for env_name, field in env_fields.items():
        value = os.getenv(env_name)
        if value:
            data[field] = value
    return DatasourceConfig(**data)


def load_config(config_path: Optional[str] = None) -> DatasourceConfig:
    """
    Load configuration with simple fallbacks.

    An explicitly given path must exist; the implicit candidates are
    skipped when missing and the environment is used instead.
    """
    if config_path:
        logger.info(f"Loading configuration from: {config_path}")
        return load_config_from(config_path)

    for candidate in (os.environ.get("OPENFALCON_CONFIG"), "./openfalcon.yaml"):
        if candidate and Path(candidate).exists():
            logger.info(f"Loading configuration from: {candidate}")
            return load_config_from(candidate)

    logger.info("Using configuration from environment")
    return config_from_env()
