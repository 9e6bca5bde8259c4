"""Core infrastructure components for the claim lifecycle service."""

from .cache import Cache
from .config import Settings, get_settings
from .database import Database
from .result_types import Err, Ok, Result

__all__ = ["Cache", "Database", "Err", "Ok", "Result", "Settings", "get_settings"]
