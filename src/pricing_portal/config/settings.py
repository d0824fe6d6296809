"""
Centralized settings and path configuration for the pricing portal.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    # Walk up from this file to find the project root
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    return int(raw)


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path
    data_dir: Path

    # Rule tables
    global_rules_csv: Path
    user_rules_csv: Path

    # Shared secret expected in the X-Admin-Key header
    admin_api_key: Optional[str] = None

    # Rule cache
    cache_ttl_seconds: float = 60.0

    # Rule fetch policy
    fetch_timeout_seconds: float = 10.0
    fetch_max_retries: int = 2
    fetch_retry_delay_seconds: float = 1.0

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @classmethod
    def load(cls, project_root: Optional[Path] = None, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        env_data_dir = os.getenv('PRICING_PORTAL_DATA_DIR')
        data = data_dir or (Path(env_data_dir) if env_data_dir else root / 'data')

        return cls(
            project_root=root,
            data_dir=data,
            global_rules_csv=data / 'global_price_adjustments.csv',
            user_rules_csv=data / 'user_price_adjustments.csv',
            admin_api_key=os.getenv('PRICING_PORTAL_ADMIN_KEY') or None,
            cache_ttl_seconds=_env_float('PRICING_PORTAL_CACHE_TTL', 60.0),
            fetch_timeout_seconds=_env_float('PRICING_PORTAL_FETCH_TIMEOUT', 10.0),
            fetch_max_retries=_env_int('PRICING_PORTAL_FETCH_RETRIES', 2),
            fetch_retry_delay_seconds=_env_float('PRICING_PORTAL_RETRY_DELAY', 1.0),
            api_host=os.getenv('PRICING_PORTAL_API_HOST') or "0.0.0.0",
            api_port=_env_int('PRICING_PORTAL_API_PORT', 8000),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
