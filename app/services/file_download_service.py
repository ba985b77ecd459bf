"""
File Download Service
导出文件下载：校验任务状态并解析磁盘文件
"""

from typing import BinaryIO, Dict, Tuple

from app.core.constants import EXPORT_TASK_STATUS, XLSX_CONTENT_TYPE
from app.core.exceptions import ErrorCode, TaskNotFoundError, TaskStateError
from app.core.logging import logger
from app.models.export_task import ExportTask
from app.schemas.export import ExportFileInfo
from app.services.export_task_store import ExportTaskStore
from app.utils.file_utils import content_disposition, get_file_size, is_readable_file


class FileDownloadService:
    """导出文件下载服务（只读，仅依赖任务存储）"""

    def __init__(self, store: ExportTaskStore):
        self.store = store

    def _get_task(self, task_id: str) -> ExportTask:
        task = self.store.get_by_task_id(task_id)
        if task is None:
            raise TaskNotFoundError()
        return task

    def _validate_downloadable(self, task: ExportTask) -> None:
        if task.status != EXPORT_TASK_STATUS["SUCCESS"]:
            raise TaskStateError(ErrorCode.TASK_NOT_COMPLETED, "任务未完成或已失败")
        if not task.file_path:
            raise TaskStateError(ErrorCode.FILE_PATH_MISSING, "文件路径不存在")
        if not is_readable_file(task.file_path):
            raise TaskStateError(ErrorCode.FILE_NOT_FOUND, "文件不存在")

    def resolve(self, task_id: str) -> Tuple[BinaryIO, Dict[str, str]]:
        """解析下载文件

        Returns:
            (已打开的二进制文件流, 响应头)，调用方负责关闭文件流

        Raises:
            TaskNotFoundError: 任务不存在
            TaskStateError: 任务未成功、缺少文件路径或文件不存在
        """
        task = self._get_task(task_id)
        self._validate_downloadable(task)

        file_size = get_file_size(task.file_path)
        headers = {
            "Content-Disposition": content_disposition(task.file_name),
            "Content-Type": XLSX_CONTENT_TYPE,
            "Content-Length": str(file_size),
            "Cache-Control": "no-cache",
        }
        stream = open(task.file_path, "rb")
        logger.info(f"开始下载导出文件: {task_id}, 文件: {task.file_name}, 大小: {file_size} 字节")
        return stream, headers

    def is_file_downloadable(self, task_id: str) -> bool:
        task = self.store.get_by_task_id(task_id)
        if task is None:
            return False
        try:
            self._validate_downloadable(task)
        except TaskStateError:
            return False
        return True

    def get_file_info(self, task_id: str) -> dict:
        """查询导出文件信息"""
        task = self._get_task(task_id)
        info = ExportFileInfo(
            task_id=task.task_id,
            file_name=task.file_name,
            file_size=task.file_size,
            status=task.status,
            downloadable=self.is_file_downloadable(task_id),
        )
        return info.model_dump(by_alias=True)
