"""
Generated Text Support

Response cache and hit/miss statistics for generated text.
"""

from .cache import ResponseCache, CacheStats, normalize_query, generate_cache_key

__all__ = [
    'ResponseCache',
    'CacheStats',
    'normalize_query',
    'generate_cache_key',
]
