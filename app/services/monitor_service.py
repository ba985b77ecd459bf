"""
Monitor Service
进程内存与垃圾回收监控
"""

import gc
import os
import platform
import time
from typing import Any, Dict

import psutil

from app.core.logging import logger
from app.utils.memory_monitor import MB, get_memory_limit, read_process_memory


class MonitorService:
    """系统监控服务"""

    def get_memory_info(self) -> Dict[str, Any]:
        """获取进程与系统内存使用情况"""
        used = read_process_memory()
        limit = get_memory_limit()
        system = psutil.virtual_memory()
        return {
            "processMemory": {
                "rss": used,
                "rssMb": round(used / MB, 2),
                "limit": limit,
                "usage": round(used / limit * 100, 2) if limit else 0.0,
                "availableProcessors": os.cpu_count() or 1,
            },
            "systemMemory": {
                "total": system.total,
                "available": system.available,
                "used": system.used,
                "percent": system.percent,
            },
            "timestamp": int(time.time() * 1000),
        }

    def get_gc_info(self) -> Dict[str, Any]:
        """获取各代垃圾回收统计"""
        generations = []
        total_collections = 0
        for index, stats in enumerate(gc.get_stats()):
            collections = stats.get("collections", 0)
            total_collections += collections
            generations.append({
                "generation": index,
                "collections": collections,
                "collected": stats.get("collected", 0),
                "uncollectable": stats.get("uncollectable", 0),
            })
        return {
            "generations": generations,
            "pendingCounts": list(gc.get_count()),
            "thresholds": list(gc.get_threshold()),
            "totalCollections": total_collections,
            "enabled": gc.isenabled(),
            "timestamp": int(time.time() * 1000),
        }

    def trigger_gc(self) -> Dict[str, Any]:
        """手动触发一次完整回收"""
        before = read_process_memory()
        started = time.monotonic()
        collected = gc.collect()
        duration_ms = (time.monotonic() - started) * 1000
        after = read_process_memory()
        freed = before - after

        logger.info(
            f"手动触发GC完成，回收对象: {collected}，释放内存: {freed / MB:.2f} MB，耗时: {duration_ms:.0f} ms"
        )
        return {
            "beforeMemory": before,
            "afterMemory": after,
            "freedMemory": freed,
            "collectedObjects": collected,
            "durationMs": round(duration_ms, 2),
            "timestamp": int(time.time() * 1000),
        }

    def get_system_info(self) -> Dict[str, Any]:
        """汇总内存、GC与运行环境信息"""
        memory = self.get_memory_info()
        gc_info = self.get_gc_info()
        return {
            "memory": memory["processMemory"],
            "systemMemory": memory["systemMemory"],
            "gc": gc_info["generations"],
            "system": {
                "pythonVersion": platform.python_version(),
                "pythonImplementation": platform.python_implementation(),
                "osName": platform.system(),
                "osVersion": platform.release(),
                "osArch": platform.machine(),
            },
            "timestamp": int(time.time() * 1000),
        }
