"""
Service Dependencies
"""

from fastapi import Depends

from app.config.executors import get_export_executor, get_task_executor
from app.core.cache import CacheManager
from app.core.executors import BoundedExecutor
from app.dependencies.cache import get_cache
from app.dependencies.database import get_session_factory
from app.services.export_cache_service import ExportTaskCacheService
from app.services.export_service import ExcelExportService
from app.services.export_task_store import ExportTaskStore
from app.services.file_download_service import FileDownloadService
from app.services.monitor_service import MonitorService
from app.services.performance_service import PerformanceService
from app.services.traditional_export_service import TraditionalExportService
from app.services.user_export_source import UserExportSource


def get_task_store(session_factory=Depends(get_session_factory)) -> ExportTaskStore:
    return ExportTaskStore(session_factory)


def get_export_service(
    session_factory=Depends(get_session_factory),
    cache: CacheManager = Depends(get_cache),
    executor: BoundedExecutor = Depends(get_export_executor),
) -> ExcelExportService:
    """组装导出服务"""
    return ExcelExportService(
        store=ExportTaskStore(session_factory),
        cache=ExportTaskCacheService(cache),
        source=UserExportSource(session_factory),
        executor=executor,
    )


def get_download_service(store: ExportTaskStore = Depends(get_task_store)) -> FileDownloadService:
    return FileDownloadService(store)


def get_monitor_service() -> MonitorService:
    return MonitorService()


def get_performance_service(
    session_factory=Depends(get_session_factory),
    export_service: ExcelExportService = Depends(get_export_service),
    executor: BoundedExecutor = Depends(get_task_executor),
    monitor_service: MonitorService = Depends(get_monitor_service),
) -> PerformanceService:
    """组装性能对比服务，传统导出在通用线程池中执行"""
    source = UserExportSource(session_factory)
    return PerformanceService(
        export_service=export_service,
        traditional_service=TraditionalExportService(source),
        source=source,
        executor=executor,
        monitor_service=monitor_service,
    )
