"""
Excel Export Service
Excel 流式导出服务：准入控制、任务创建、同步/异步调度、分批读写与进度持久化
"""

import os
import time
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.config.settings import Settings, settings
from app.core.constants import EXPORT_TASK_STATUS, USER_EXPORT_HEADERS
from app.core.exceptions import (
    CapacityError,
    ExportExecutionError,
    ExportValidationError,
    NoDataError,
    TaskNotFoundError,
)
from app.core.executors import BoundedExecutor
from app.core.logging import logger
from app.models.export_task import ExportTask
from app.schemas.export import ExportRequest, ExportStatistics, ExportTaskResponse
from app.services.excel_writer import StreamingExcelWriter
from app.services.export_cache_service import ExportTaskCacheService
from app.services.export_task_store import ExportTaskStore
from app.services.user_export_source import UserExportSource
from app.utils.file_utils import build_export_filename, ensure_directory, get_file_size
from app.utils.memory_monitor import MemoryMonitor, manage_memory


def compute_progress(processed_count: int, total_count: int) -> float:
    """进度百分比，限制在 [0, 100]"""
    if total_count <= 0:
        return 0.0
    progress = processed_count * 100.0 / total_count
    return round(min(max(progress, 0.0), 100.0), 2)


def build_query_params(request: ExportRequest) -> Dict[str, Any]:
    """合并结构化查询条件与简单查询字段"""
    params: Dict[str, Any] = dict(request.query_params or {})
    if request.username:
        params["username"] = request.username
    if request.department:
        params["department"] = request.department
    if request.start_time:
        params["startTime"] = request.start_time
    if request.end_time:
        params["endTime"] = request.end_time
    return params


def summarize_failure(error: Exception) -> str:
    """执行异常 -> 面向用户的失败原因，不包含路径、SQL 或任务ID"""
    if isinstance(error, SQLAlchemyError):
        return "数据查询失败"
    if isinstance(error, OSError):
        return "导出文件写入失败"
    return "导出失败"


class ExcelExportService:
    """Excel 导出服务

    每个任务在单个线程内顺序执行 读取 -> 写入 -> 持久化进度，
    多个任务之间只共享任务存储与状态缓存。
    """

    def __init__(
        self,
        store: ExportTaskStore,
        cache: ExportTaskCacheService,
        source: UserExportSource,
        executor: Optional[BoundedExecutor] = None,
        config: Optional[Settings] = None,
        writer_factory: Callable[..., StreamingExcelWriter] = StreamingExcelWriter,
    ):
        self.store = store
        self.cache = cache
        self.source = source
        if executor is None:
            from app.config.executors import get_export_executor
            executor = get_export_executor()
        self.executor = executor
        self.config = config or settings
        self.writer_factory = writer_factory

    # ------------------------------------------------------------------
    # 提交
    # ------------------------------------------------------------------

    def start_export(self, request: ExportRequest) -> Dict[str, Any]:
        """提交导出任务

        异步模式下立即返回 PENDING 快照；同步模式下执行完成后返回最终快照，
        执行失败时抛出 ExportExecutionError。
        """
        if not request.export_type or not request.export_type.strip():
            raise ExportValidationError("导出类型不能为空")

        task_name = request.task_name or self.config.EXPORT_DEFAULT_TASK_NAME
        create_by = request.create_by or self.config.EXPORT_DEFAULT_CREATOR

        processing = self.store.count_processing_tasks()
        if processing >= self.config.EXPORT_MAX_CONCURRENT_TASKS:
            logger.warning(
                f"导出任务过多，拒绝新任务: 处理中 {processing}, 上限 {self.config.EXPORT_MAX_CONCURRENT_TASKS}"
            )
            raise CapacityError()

        query_params = build_query_params(request)
        total_count = self.source.count_for_export(query_params)
        if total_count <= 0:
            raise NoDataError()

        now = datetime.now()
        task = ExportTask(
            task_id=uuid.uuid4().hex,
            task_name=task_name,
            export_type=request.export_type,
            status=EXPORT_TASK_STATUS["PENDING"],
            total_count=total_count,
            processed_count=0,
            progress=0.0,
            create_by=create_by,
            start_time=now,
            create_time=now,
        )
        task = self.store.create(task)
        self.cache.put(task)

        logger.info(
            f"导出任务已创建: {task.task_id}, 名称: {task_name}, 类型: {request.export_type}, "
            f"总数: {total_count}, 异步: {request.async_export}, 创建人: {create_by}"
        )

        if request.async_export:
            snapshot = self.build_response(task.to_dict())
            self._dispatch_async(task, query_params)
            return snapshot

        self._run_export_sync(task, query_params)
        return self.build_response(self._refresh_cache(task.task_id))

    def _dispatch_async(self, task: ExportTask, query_params: Dict[str, Any]) -> None:
        try:
            self.executor.submit(self._run_export_async, task, query_params)
        except Exception as e:
            logger.error(f"提交导出任务失败: {task.task_id}, 错误: {e}", exc_info=True)
            self.finalize(task.task_id, EXPORT_TASK_STATUS["FAILED"], "提交导出任务失败")
            raise ExportExecutionError("提交导出任务失败，请稍后再试") from e

    def _run_export_sync(self, task: ExportTask, query_params: Dict[str, Any]) -> None:
        self._execute_export(task, query_params)

    def _run_export_async(self, task: ExportTask, query_params: Dict[str, Any]) -> None:
        """后台执行：失败只记录到任务状态，没有调用方可以接收异常"""
        try:
            self._execute_export(task, query_params)
        except ExportExecutionError as e:
            logger.warning(f"异步导出任务失败: {task.task_id}, {e.message}")

    # ------------------------------------------------------------------
    # 执行
    # ------------------------------------------------------------------

    def _execute_export(self, task: ExportTask, query_params: Dict[str, Any]) -> None:
        monitor = MemoryMonitor(task.task_id, interval_ms=self.config.MEMORY_MONITOR_INTERVAL_MS)
        started = time.monotonic()
        try:
            monitor.start_monitoring()
            self._do_export(task, query_params)
        except Exception as e:
            logger.error(f"导出任务执行失败: {task.task_id}, 错误: {e}", exc_info=True)
            reason = summarize_failure(e)
            self._mark_failed(task.task_id, reason)
            raise ExportExecutionError(reason) from e
        finally:
            try:
                monitor.stop_monitoring()
            except Exception as e:
                logger.warning(f"停止内存监控失败: {task.task_id}, 错误: {e}")

        stats = monitor.get_memory_stats()
        logger.info(
            f"导出任务完成: {task.task_id}, 耗时: {time.monotonic() - started:.2f}s, "
            f"内存峰值增长: {stats.memory_increase_mb:.2f} MB"
        )

    def _do_export(self, task: ExportTask, query_params: Dict[str, Any]) -> None:
        task_id = task.task_id
        total_count = task.total_count
        batch_size = self.config.EXPORT_BATCH_SIZE
        check_interval = self.config.EXPORT_MEMORY_CHECK_INTERVAL_BATCHES

        file_name = build_export_filename(task.task_name, task.create_time)
        task_dir = ensure_directory(os.path.join(self.config.EXPORT_TEMP_PATH, task_id))
        file_path = os.path.join(task_dir, file_name)

        if not self.store.update_status(task_id, EXPORT_TASK_STATUS["PROCESSING"]):
            raise RuntimeError("任务状态不允许开始处理")
        self._refresh_cache(task_id)
        logger.info(f"开始导出任务: {task_id}, 文件: {file_name}, 批次大小: {batch_size}")

        processed_count = 0
        batch_count = 0
        with self.writer_factory(file_path, USER_EXPORT_HEADERS, self.config.EXPORT_SHEET_NAME) as writer:
            while processed_count < total_count:
                limit = min(batch_size, total_count - processed_count)
                rows = self.source.fetch_batch(query_params, processed_count, limit)
                if not rows:
                    logger.warning(
                        f"任务 {task_id} 提前读取到空批次，已处理 {processed_count}/{total_count}，结束读取"
                    )
                    break

                writer.write_batch(rows)
                processed_count += len(rows)
                batch_count += 1

                progress = compute_progress(processed_count, total_count)
                self.store.update_progress(task_id, processed_count, progress)
                self._refresh_cache(task_id)
                logger.info(f"任务 {task_id} 进度: {processed_count}/{total_count} ({progress}%)")

                if check_interval > 0 and batch_count % check_interval == 0:
                    manage_memory(task_id, processed_count, config=self.config)

        file_size = get_file_size(file_path)
        self.store.update_file_info(task_id, file_path, file_name, file_size)
        self.finalize(task_id, EXPORT_TASK_STATUS["SUCCESS"])
        logger.info(f"导出文件生成完成: {task_id}, 批次数: {batch_count}, 文件大小: {file_size} 字节")

    def finalize(self, task_id: str, status: str, error_message: Optional[str] = None) -> bool:
        """写入终态；任务已处于终态时不做任何修改"""
        changed = self.store.update_status(task_id, status, error_message)
        self._refresh_cache(task_id)
        return changed

    def _mark_failed(self, task_id: str, reason: str) -> None:
        try:
            self.finalize(task_id, EXPORT_TASK_STATUS["FAILED"], reason)
        except Exception as e:
            logger.error(f"更新任务失败状态出错: {task_id}, 错误: {e}", exc_info=True)

    def _refresh_cache(self, task_id: str) -> Optional[Dict[str, Any]]:
        task = self.store.get_by_task_id(task_id)
        if task is None:
            return None
        self.cache.put(task)
        return task.to_dict()

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def get_export_status(self, task_id: str) -> Dict[str, Any]:
        """查询任务状态（先查缓存，未命中再查数据库并回填）"""
        data = self.cache.get_or_load(task_id, self.store.get_by_task_id)
        if data is None:
            raise TaskNotFoundError()
        return self.build_response(data)

    def list_user_tasks(self, create_by: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """查询创建人的任务列表"""
        limit = limit or self.config.EXPORT_TASK_LIST_DEFAULT_LIMIT
        tasks = self.store.list_by_creator(create_by, limit)
        return [self.build_response(task.to_dict()) for task in tasks]

    def get_statistics(self) -> Dict[str, Any]:
        """导出统计：处理中任务数"""
        stats = ExportStatistics(
            processing_count=self.store.count_processing_tasks(),
            timestamp=int(time.time() * 1000),
        )
        return stats.model_dump(by_alias=True)

    def build_response(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """任务快照 -> 接口响应，下载地址仅在成功时返回"""
        download_url = None
        if data.get("status") == EXPORT_TASK_STATUS["SUCCESS"]:
            download_url = f"{self.config.EXPORT_DOWNLOAD_URL_PREFIX}{data['task_id']}"

        response = ExportTaskResponse(
            task_id=data["task_id"],
            task_name=data.get("task_name"),
            export_type=data.get("export_type"),
            status=data["status"],
            progress=data.get("progress") or 0.0,
            total_count=data.get("total_count") or 0,
            processed_count=data.get("processed_count") or 0,
            file_name=data.get("file_name"),
            file_size=data.get("file_size"),
            download_url=download_url,
            error_message=data.get("error_message"),
            create_by=data.get("create_by"),
            create_time=data.get("create_time"),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            update_time=data.get("update_time"),
        ).model_dump(by_alias=True)

        if download_url is None:
            response.pop("downloadUrl")
        return response
