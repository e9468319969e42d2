"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import CacheTestFactory, InMemoryRedis

__all__ = ["CacheTestFactory", "InMemoryRedis"]
