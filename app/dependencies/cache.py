"""
Cache Dependencies
"""

from app.core.cache import CacheManager, cache_manager


def get_cache() -> CacheManager:
    """获取缓存管理器"""
    return cache_manager
