"""Core app configuration, errors and database."""

from manager_api.core.config import Settings, get_settings
from manager_api.core.database import get_engine

__all__ = ["Settings", "get_settings", "get_engine"]
