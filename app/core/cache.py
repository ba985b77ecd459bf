"""
Cache Module
"""

from typing import Any, Optional
import json
import redis
from app.config.redis import get_redis
from app.core.logging import logger

class CacheManager:
    """缓存管理器

    缓存仅用于加速查询，读写失败只记录日志，不向调用方抛出异常。
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self.redis_client = redis_client if redis_client is not None else get_redis()

    def get(self, key: str) -> Optional[Any]:
        """获取缓存"""
        try:
            value = self.redis_client.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.warning(f"缓存获取错误: key={key}, error={e}")
            return None

    def set(
        self,
        key: str,
        value: Any,
        expire: Optional[int] = None
    ) -> bool:
        """设置缓存"""
        try:
            payload = json.dumps(value, ensure_ascii=False, default=str)
            if expire:
                self.redis_client.setex(key, expire, payload)
            else:
                self.redis_client.set(key, payload)
            return True
        except Exception as e:
            logger.warning(f"缓存设置错误: key={key}, error={e}")
            return False

    def delete(self, key: str) -> bool:
        """删除缓存"""
        try:
            self.redis_client.delete(key)
            return True
        except Exception as e:
            logger.warning(f"缓存删除错误: key={key}, error={e}")
            return False

    def ping(self) -> bool:
        """检查Redis是否可用"""
        try:
            return bool(self.redis_client.ping())
        except Exception as e:
            logger.warning(f"Redis连接检查失败: {e}")
            return False

# 全局缓存管理器实例
cache_manager = CacheManager()
