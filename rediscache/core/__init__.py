"""
Core Module

Foundational components: configuration, logging and exceptions.
"""

from .exceptions import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
    CacheUnavailableError,
    ConfigurationError,
    RedisCacheError,
)
from .logging import get_logger, log_stage, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "log_stage",
    "RedisCacheError",
    "ConfigurationError",
    "CacheError",
    "CacheUnavailableError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
]
