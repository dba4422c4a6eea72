"""
Runtime settings for the retention API, read from the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load .env file if it exists
project_root = Path(__file__).resolve().parents[1]
env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)


DEFAULT_TARGET_RETENTION = 0.9

logger = logging.getLogger(__name__)


def _get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _get_target_retention() -> float:
    value = _get_env_float("RETENTION_TARGET_RETENTION", DEFAULT_TARGET_RETENTION)
    if not 0.0 < value <= 1.0:
        logger.warning(
            "RETENTION_TARGET_RETENTION=%s is outside (0, 1]; using %s",
            value,
            DEFAULT_TARGET_RETENTION,
        )
        return DEFAULT_TARGET_RETENTION
    return value


@dataclass
class APIConfig:
    """Settings for the HTTP layer."""

    title: str = field(
        default_factory=lambda: os.getenv("RETENTION_API_TITLE", "Retention Scheduling API")
    )
    cors_origins: List[str] = field(
        default_factory=lambda: _get_env_list("RETENTION_CORS_ORIGINS", ["*"])
    )
    default_target_retention: float = field(default_factory=_get_target_retention)
