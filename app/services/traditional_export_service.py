"""
Traditional Export Service
传统导出方式：一次性查询全部数据并在内存中构建完整工作簿，仅用于性能对比
"""

import os
import time
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from openpyxl import Workbook

from app.config.settings import Settings, settings
from app.core.constants import USER_EXPORT_HEADERS
from app.core.logging import logger
from app.services.user_export_source import UserExportSource
from app.utils.file_utils import ensure_directory, get_file_size
from app.utils.memory_monitor import MemoryMonitor, MemoryStats


def build_performance_metrics(total_ms: float, stats: MemoryStats, record_count: int) -> Dict[str, Any]:
    """耗时与内存统计 -> 性能指标"""
    performance = {
        "totalTime": round(total_ms, 2),
        "memoryUsage": stats.memory_increase,
        "peakMemoryUsage": stats.peak_memory,
        "startMemoryUsage": stats.start_memory,
    }
    if record_count > 0:
        performance["avgTimePerRecord"] = total_ms / record_count
        performance["avgMemoryPerRecord"] = stats.memory_increase_mb / record_count
    return performance


class TraditionalExportService:
    """传统导出服务"""

    def __init__(self, source: UserExportSource, config: Optional[Settings] = None):
        self.source = source
        self.config = config or settings

    def export_traditional(self, query_params: Dict[str, Any]) -> Dict[str, Any]:
        """一次性加载全部数据后写入 Excel，返回文件信息与性能指标"""
        run_id = uuid.uuid4().hex
        monitor = MemoryMonitor(f"traditional-{run_id[:8]}", interval_ms=self.config.MEMORY_MONITOR_INTERVAL_MS)
        started = time.monotonic()
        monitor.start_monitoring()
        try:
            logger.info(f"开始传统方式导出，查询参数: {query_params}")

            query_started = time.monotonic()
            rows = self.source.fetch_all(query_params)
            query_ms = (time.monotonic() - query_started) * 1000
            logger.info(f"数据查询完成，共 {len(rows)} 条记录，耗时: {query_ms:.0f} ms")

            file_name = f"traditional_export_{datetime.now():%Y%m%d_%H%M%S}.xlsx"
            file_dir = ensure_directory(os.path.join(self.config.EXPORT_TEMP_PATH, "performance", run_id))
            file_path = os.path.join(file_dir, file_name)

            write_started = time.monotonic()
            workbook = Workbook()
            sheet = workbook.active
            sheet.title = self.config.EXPORT_SHEET_NAME
            sheet.append(USER_EXPORT_HEADERS)
            for row in rows:
                sheet.append(list(row))
            workbook.save(file_path)
            write_ms = (time.monotonic() - write_started) * 1000
            logger.info(f"Excel写入完成，耗时: {write_ms:.0f} ms")
        finally:
            try:
                monitor.stop_monitoring()
            except Exception as e:
                logger.warning(f"停止内存监控时发生异常: {e}")

        total_ms = (time.monotonic() - started) * 1000
        stats = monitor.get_memory_stats()
        performance = build_performance_metrics(total_ms, stats, len(rows))
        performance["queryTime"] = round(query_ms, 2)
        performance["writeTime"] = round(write_ms, 2)
        performance["totalMemoryUsage"] = stats.peak_memory

        logger.info(
            f"传统导出完成 - 总耗时: {total_ms:.0f} ms, 查询耗时: {query_ms:.0f} ms, 写入耗时: {write_ms:.0f} ms, "
            f"峰值内存: {stats.peak_memory_mb:.2f} MB, 内存增长: {stats.memory_increase_mb:.2f} MB"
        )
        return {
            "success": True,
            "method": "traditional",
            "recordCount": len(rows),
            "fileName": file_name,
            "fileSize": get_file_size(file_path),
            "performance": performance,
        }
