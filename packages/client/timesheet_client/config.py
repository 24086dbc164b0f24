"""
Configuration loading and validation.

Loads client configuration from a YAML file; the password is resolved from an
environment variable and never stored in the config file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    url: str = "http://localhost:8000"
    verify_tls: bool = True
    request_timeout_seconds: int = 30


class CacheConfig(BaseModel):
    db_path: str = "./data/timesheet_cache.db"


class CredentialsConfig(BaseModel):
    email: Optional[str] = None
    password_env: str = "TIMESHEET_PASSWORD"

    @property
    def password(self) -> str | None:
        return os.environ.get(self.password_env)


class LoggingConfig(BaseModel):
    level: str = "info"
    format: Literal["json", "text"] = "text"


class ClientConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    resolve_timeout_seconds: Optional[float] = Field(default=15.0, gt=0)


def load_config(path: str | Path) -> ClientConfig:
    """Load and validate client configuration from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    return ClientConfig.model_validate(raw)
