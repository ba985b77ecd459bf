"""
Executor Configuration
导出任务线程池与通用后台线程池
"""

from app.config.settings import settings
from app.core.executors import BoundedExecutor
from app.core.logging import logger

# 导出任务专用线程池
export_executor = BoundedExecutor(
    name="ExportTask-",
    max_workers=settings.EXPORT_POOL_MAX_WORKERS,
    queue_capacity=settings.EXPORT_POOL_QUEUE_CAPACITY,
)

# 通用后台线程池
task_executor = BoundedExecutor(
    name="Async-",
    max_workers=settings.task_pool_max_workers,
    queue_capacity=settings.TASK_POOL_QUEUE_CAPACITY,
)

logger.info(
    f"导出任务线程池初始化完成，最大线程数: {export_executor.max_workers}, "
    f"队列容量: {export_executor.queue_capacity}"
)
logger.info(
    f"通用异步线程池初始化完成，最大线程数: {task_executor.max_workers}, "
    f"队列容量: {task_executor.queue_capacity}"
)


def get_export_executor() -> BoundedExecutor:
    """获取导出任务线程池"""
    return export_executor


def get_task_executor() -> BoundedExecutor:
    """获取通用后台线程池"""
    return task_executor


def shutdown_executors() -> None:
    """关闭线程池：通用线程池等待完成，导出线程池不阻塞进程退出"""
    task_executor.shutdown(wait=True)
    export_executor.shutdown(wait=False, cancel_pending=True)
