# club_dashboard/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Environment detection
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, Optional
from dataclasses import dataclass

# Initialize logger
logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


@dataclass
class APIConfig:
    """Reporting API configuration container"""
    base_url: str = "http://localhost:8000"
    timeout_seconds: float = 0

    @property
    def timeout(self) -> Optional[float]:
        """requests-style timeout; 0 means wait indefinitely."""
        return self.timeout_seconds if self.timeout_seconds > 0 else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'base_url': self.base_url,
            'timeout_seconds': self.timeout_seconds,
        }


class Config:
    """
    Centralized configuration management

    Usage:
        from club_dashboard.config import config

        api_config = config.get_api_config()
        page_size = config.get_app_setting("DRILLDOWN_PAGE_SIZE", 10)
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        api_secrets = st.secrets.get("REPORTING_API", {})
        self._api_config = APIConfig(
            base_url=str(api_secrets.get("BASE_URL", "http://localhost:8000")).rstrip('/'),
            timeout_seconds=float(api_secrets.get("TIMEOUT_SECONDS", 0)),
        )

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._api_config = APIConfig(
            base_url=os.getenv("REPORTING_API_BASE_URL", "http://localhost:8000").rstrip('/'),
            timeout_seconds=float(os.getenv("API_TIMEOUT_SECONDS", "0")),
        )

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Drill-down
            "DRILLDOWN_PAGE_SIZE": int(os.getenv("DRILLDOWN_PAGE_SIZE", "10")),

            # Filters
            "DEFAULT_DATE_RANGE": os.getenv("DEFAULT_DATE_RANGE", "last-30-days"),

            # Cache
            "REFERENCE_CACHE_TTL_SECONDS": int(os.getenv("REFERENCE_CACHE_TTL_SECONDS", "3600")),

            # Feature flags
            "ENABLE_DEBUG_MODE": os.getenv("ENABLE_DEBUG_MODE", "false").lower() == "true",
        }

    def _log_config_status(self):
        """Log configuration status"""
        logger.info(f"✅ Reporting API: {self._api_config.base_url}")
        timeout = self._api_config.timeout
        logger.info(f"✅ API timeout: {f'{timeout}s' if timeout else 'none'}")

    # ==================== PUBLIC GETTERS ====================

    def get_api_config(self) -> APIConfig:
        """Get reporting API configuration"""
        return self._api_config

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, True)

    # ==================== PROPERTIES ====================

    @property
    def api_base_url(self) -> str:
        return self._api_config.base_url

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

IS_RUNNING_ON_CLOUD = config.is_cloud
API_BASE_URL = config.api_base_url
APP_CONFIG = config.app_config

__all__ = [
    'config',
    'Config',
    'APIConfig',
    'IS_RUNNING_ON_CLOUD',
    'API_BASE_URL',
    'APP_CONFIG',
]
