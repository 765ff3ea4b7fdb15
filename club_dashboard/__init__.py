# club_dashboard/__init__.py
"""
Shared Utilities Package for the Club Performance Dashboard

This package contains common utilities shared across all pages:
- config: Configuration management (local + Streamlit Cloud)
- api_client: Reporting API client with a shared session

Usage:
    from club_dashboard.config import config
    from club_dashboard.api_client import get_api_client, check_api_connection

    # Or import commonly used items directly
    from club_dashboard import get_api_client, config
"""

# Configuration
from .config import (
    config,
    Config,
    IS_RUNNING_ON_CLOUD,
    API_BASE_URL,
    APP_CONFIG,
)

# Reporting API
from .api_client import (
    ReportingAPIError,
    ReportingAPIClient,
    encode_query_params,
    to_query_string,
    get_api_client,
    reset_api_client,
    check_api_connection,
)

__all__ = [
    # Config
    'config',
    'Config',
    'IS_RUNNING_ON_CLOUD',
    'API_BASE_URL',
    'APP_CONFIG',

    # Reporting API
    'ReportingAPIError',
    'ReportingAPIClient',
    'encode_query_params',
    'to_query_string',
    'get_api_client',
    'reset_api_client',
    'check_api_connection',
]

__version__ = '1.0.0'
