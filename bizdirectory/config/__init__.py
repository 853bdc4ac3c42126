"""
Configuration Management.

Settings are loaded with Pydantic Settings from (in order of precedence):
1. Environment variables
2. .env file
3. Default values

Example:
    from bizdirectory.config import get_settings

    settings = get_settings()
    url = settings.supabase_url
"""

from bizdirectory.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
