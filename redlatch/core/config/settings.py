"""
Settings for redlatch.

Simple, reliable environment variable configuration for the cache and mutex.
"""

import os
import tomllib
from pathlib import Path

from dotenv import load_dotenv

# Load .env file for local development - look in current working directory
load_dotenv(".env")


def _get_version_from_pyproject() -> str:
    """
    Read version from pyproject.toml file.

    Returns:
        Version string from pyproject.toml, or fallback version
    """
    current_path = Path(__file__)
    for parent in [current_path.parent, *current_path.parents]:
        pyproject_path = parent / "pyproject.toml"
        if pyproject_path.exists():
            try:
                with open(pyproject_path, "rb") as f:
                    pyproject_data = tomllib.load(f)
                    version = pyproject_data.get("project", {}).get("version")
                    if version:
                        return version
            except (OSError, tomllib.TOMLDecodeError):
                continue

    return "0.1.0"


def _get_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings with environment-based configuration."""

    def __init__(self):
        # ================================================================
        # Version
        # ================================================================
        self.version: str = _get_version_from_pyproject()

        # ================================================================
        # Environment & General Configuration
        # ================================================================
        self.app_id: str = os.getenv("APP_ID", "app")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir: str = os.getenv("LOG_DIR", "./logs")
        self.environment: str = os.getenv("ENVIRONMENT", "DEV")

        # ================================================================
        # Redis Configuration
        # ================================================================
        self.redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self.redis_max_connections: int = int(os.getenv("REDIS_MAX_CONNECTIONS", "64"))
        self.redis_cluster: bool = _get_bool("REDIS_CLUSTER", "false")

        # ================================================================
        # Cache Configuration
        # ================================================================
        self.cache_key_prefix: str = os.getenv("CACHE_KEY_PREFIX", "")
        self.cache_default_ttl: int = int(os.getenv("CACHE_DEFAULT_TTL", "0"))

        # ================================================================
        # Mutex Configuration
        # ================================================================
        self.mutex_key_prefix: str = os.getenv(
            "MUTEX_KEY_PREFIX", f"{self.app_id}:lock"
        )
        self.mutex_expire: int = int(os.getenv("MUTEX_EXPIRE", "30"))
        self.mutex_auto_release: bool = _get_bool("MUTEX_AUTO_RELEASE", "true")

        self._validate_settings()

    def _validate_settings(self):
        """Validate settings values."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR"]
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        self.log_level = self.log_level.upper()

        valid_environments = ["DEV", "PROD"]
        if self.environment.upper() not in valid_environments:
            self.environment = "DEV"  # Default fallback
        self.environment = self.environment.upper()

        if self.cache_default_ttl < 0:
            raise ValueError("CACHE_DEFAULT_TTL must be >= 0")
        if self.mutex_expire < 0:
            raise ValueError("MUTEX_EXPIRE must be >= 0")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "DEV"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "PROD"


# Global settings instance
settings = Settings()
