"""
Export Task Cache Service
导出任务状态缓存：写穿透 + 读穿透，数据库为唯一可信来源
"""

from typing import Any, Callable, Dict, Optional

from app.config.settings import settings
from app.core.cache import CacheManager, cache_manager
from app.core.constants import CACHE_PREFIXES
from app.core.logging import logger
from app.models.export_task import ExportTask


def export_task_cache_key(task_id: str) -> str:
    return f"{CACHE_PREFIXES['EXPORT_TASK']}{task_id}"


class ExportTaskCacheService:
    """导出任务缓存服务

    缓存中保存的是 ExportTask.to_dict() 的快照，仅用于缩短状态查询延迟，可能过期或缺失。
    """

    def __init__(self, cache: Optional[CacheManager] = None, ttl_seconds: Optional[int] = None):
        self.cache = cache or cache_manager
        self.ttl_seconds = ttl_seconds or settings.export_cache_ttl_seconds

    def get(self, task_id: str) -> Optional[Dict[str, Any]]:
        """获取任务缓存"""
        cached = self.cache.get(export_task_cache_key(task_id))
        if cached:
            logger.debug(f"导出任务缓存命中: {task_id}")
        else:
            logger.debug(f"导出任务缓存未命中: {task_id}")
        return cached

    def put(self, task: ExportTask) -> bool:
        """写入任务快照"""
        success = self.cache.set(export_task_cache_key(task.task_id), task.to_dict(), self.ttl_seconds)
        if not success:
            logger.warning(f"导出任务缓存写入失败: {task.task_id}")
        return success

    def evict(self, task_id: str) -> bool:
        """删除任务缓存"""
        return self.cache.delete(export_task_cache_key(task_id))

    def get_or_load(
        self, task_id: str, loader: Callable[[str], Optional[ExportTask]]
    ) -> Optional[Dict[str, Any]]:
        """读穿透：缓存未命中时从数据库加载并回填缓存"""
        cached = self.get(task_id)
        if cached:
            return cached

        task = loader(task_id)
        if task is None:
            return None

        self.put(task)
        return task.to_dict()
