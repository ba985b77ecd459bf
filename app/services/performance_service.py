"""
Performance Service
性能对比：依次执行流式导出与传统导出，记录耗时与内存并计算对比结果
"""

import gc
import time
import uuid
from typing import Any, Callable, Dict, Optional

from app.config.settings import Settings, settings
from app.core.exceptions import CustomException, NoDataError
from app.core.executors import BoundedExecutor
from app.core.logging import logger
from app.schemas.export import ExportRequest
from app.services.export_service import ExcelExportService, build_query_params, summarize_failure
from app.services.monitor_service import MonitorService
from app.services.traditional_export_service import TraditionalExportService, build_performance_metrics
from app.services.user_export_source import UserExportSource
from app.utils.memory_monitor import MB, MemoryMonitor, read_process_memory


def _improvement(baseline: float, value: float) -> float:
    return round((baseline - value) / baseline * 100, 2)


def calculate_comparison(optimized: Dict[str, Any], traditional: Dict[str, Any]) -> Dict[str, Any]:
    """计算两种导出方式的性能对比，百分比为正表示流式导出更优"""
    comparison: Dict[str, Any] = {}

    optimized_time = optimized.get("totalTime", 0)
    traditional_time = traditional.get("totalTime", 0)
    time_improvement = None
    if traditional_time > 0 and optimized_time > 0:
        time_improvement = _improvement(traditional_time, optimized_time)
        comparison["timeImprovement"] = time_improvement
        comparison["timeRatio"] = round(traditional_time / optimized_time, 2)

    optimized_memory = optimized.get("memoryUsage", 0)
    traditional_memory = traditional.get("memoryUsage", 0)
    memory_improvement = None
    if traditional_memory > 0:
        memory_improvement = _improvement(traditional_memory, optimized_memory)
        comparison["memoryImprovement"] = memory_improvement
        comparison["memoryRatio"] = round(traditional_memory / max(optimized_memory, 1), 2)

    optimized_peak = optimized.get("peakMemoryUsage", 0)
    traditional_peak = traditional.get("peakMemoryUsage", 0)
    if traditional_peak > 0:
        comparison["peakMemoryImprovement"] = _improvement(traditional_peak, optimized_peak)
        comparison["peakMemoryRatio"] = round(traditional_peak / max(optimized_peak, 1), 2)

    if optimized.get("avgTimePerRecord") and traditional.get("avgTimePerRecord"):
        comparison["avgTimeImprovement"] = _improvement(
            traditional["avgTimePerRecord"], optimized["avgTimePerRecord"]
        )

    faster = time_improvement is not None and time_improvement > 0
    lighter = memory_improvement is not None and memory_improvement > 0
    comparison["summary"] = {
        "优化方案更快": f"{time_improvement:.1f}%" if faster else "否",
        "内存使用更少": f"{memory_improvement:.1f}%" if lighter else "否",
        "推荐方案": "优化方案" if faster or lighter else "传统方案",
    }
    return comparison


class PerformanceService:
    """性能对比服务

    两种方式串行执行，中间强制回收并等待，避免相互影响。
    传统导出提交到通用后台线程池执行并等待结果。
    """

    def __init__(
        self,
        export_service: ExcelExportService,
        traditional_service: TraditionalExportService,
        source: UserExportSource,
        executor: BoundedExecutor,
        monitor_service: Optional[MonitorService] = None,
        config: Optional[Settings] = None,
    ):
        self.export_service = export_service
        self.traditional_service = traditional_service
        self.source = source
        self.executor = executor
        self.monitor_service = monitor_service or MonitorService()
        self.config = config or settings

    def compare(self, request: ExportRequest) -> Dict[str, Any]:
        """执行性能对比测试"""
        query_params = build_query_params(request)
        total_count = self.source.count_for_export(query_params)
        logger.info(f"开始性能对比测试，数据量: {total_count} 条")
        if total_count <= 0:
            raise NoDataError()

        result: Dict[str, Any] = {"testDataCount": total_count}
        if total_count > self.config.PERFORMANCE_LARGE_DATASET_WARNING:
            logger.warning(f"数据量过大({total_count} 条)，建议使用较小的数据集进行测试")
            result["warning"] = "数据量较大，测试可能耗时较长，建议使用较小数据集"

        result["initialMemory"] = self.monitor_service.get_memory_info()["processMemory"]

        self._cleanup_environment()
        optimized = self._run_case("optimized", lambda: self._test_optimized_export(request))

        time.sleep(self.config.PERFORMANCE_SETTLE_MS / 1000.0)
        self._cleanup_environment()
        traditional = self._run_case("traditional", lambda: self._test_traditional_export(query_params))

        result["finalMemory"] = self.monitor_service.get_memory_info()["processMemory"]
        result["optimizedExport"] = optimized
        result["traditionalExport"] = traditional
        if "performance" in optimized and "performance" in traditional:
            result["comparison"] = calculate_comparison(optimized["performance"], traditional["performance"])

        logger.info("性能对比测试完成")
        return result

    def _run_case(self, method: str, case: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        try:
            return case()
        except Exception as e:
            logger.error(f"{method} 导出测试失败: {e}", exc_info=True)
            message = e.message if isinstance(e, CustomException) else summarize_failure(e)
            return {"success": False, "method": method, "error": message}

    def _test_optimized_export(self, request: ExportRequest) -> Dict[str, Any]:
        monitor = MemoryMonitor(
            f"optimized-{uuid.uuid4().hex[:8]}", interval_ms=self.config.MEMORY_MONITOR_INTERVAL_MS
        )
        started = time.monotonic()
        monitor.start_monitoring()
        try:
            snapshot = self.export_service.start_export(request.model_copy(update={"async_export": False}))
        finally:
            try:
                monitor.stop_monitoring()
            except Exception as e:
                logger.warning(f"停止内存监控时发生异常: {e}")

        total_ms = (time.monotonic() - started) * 1000
        stats = monitor.get_memory_stats()
        logger.info(
            f"优化导出测试完成 - 耗时: {total_ms:.0f} ms, 峰值内存: {stats.peak_memory_mb:.2f} MB, "
            f"内存增长: {stats.memory_increase_mb:.2f} MB"
        )
        return {
            "success": True,
            "method": "optimized",
            "taskId": snapshot["taskId"],
            "recordCount": snapshot["totalCount"],
            "fileName": snapshot.get("fileName"),
            "fileSize": snapshot.get("fileSize"),
            "performance": build_performance_metrics(total_ms, stats, snapshot["totalCount"]),
        }

    def _test_traditional_export(self, query_params: Dict[str, Any]) -> Dict[str, Any]:
        future = self.executor.submit(self.traditional_service.export_traditional, query_params)
        return future.result()

    def _cleanup_environment(self) -> None:
        """两次强制回收，尽量消除上一次测试的内存影响"""
        pause = self.config.PERFORMANCE_CLEANUP_PAUSE_MS / 1000.0
        before = read_process_memory()
        gc.collect()
        time.sleep(pause)
        gc.collect()
        time.sleep(pause)
        after = read_process_memory()
        logger.info(
            f"环境清理完成，释放内存: {(before - after) / MB:.2f} MB，当前内存使用: {after / MB:.2f} MB"
        )
