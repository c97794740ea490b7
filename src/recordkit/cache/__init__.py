"""Lookup plan caching for recordkit."""

from .statements import CacheKey, LookupPlan, RecursiveBuildError, StatementCache

__all__ = ["CacheKey", "LookupPlan", "RecursiveBuildError", "StatementCache"]
