"""
Export Task Store
导出任务持久化：创建、按任务ID查询、状态/进度/文件信息的定向更新
"""

from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.core.constants import ALLOWED_PREDECESSORS, EXPORT_TASK_STATUS, TERMINAL_STATUSES
from app.core.logging import logger
from app.models.export_task import ExportTask

SessionFactory = Callable[[], Session]


class ExportTaskStore:
    """导出任务存储

    每个操作使用独立的短会话，返回的 ExportTask 为已脱离会话的快照。
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def create(self, task: ExportTask) -> ExportTask:
        """插入任务记录"""
        now = datetime.now()
        task.create_time = task.create_time or now
        task.update_time = now
        with self.session_factory() as db:
            db.add(task)
            db.commit()
            db.refresh(task)
            db.expunge(task)
        logger.debug(f"导出任务已创建: {task.task_id}")
        return task

    def get_by_task_id(self, task_id: str) -> Optional[ExportTask]:
        """根据任务ID查询任务"""
        with self.session_factory() as db:
            task = db.execute(
                select(ExportTask).where(ExportTask.task_id == task_id)
            ).scalar_one_or_none()
            if task is not None:
                db.expunge(task)
            return task

    def update_status(self, task_id: str, status: str, error_message: Optional[str] = None) -> bool:
        """更新任务状态

        只允许前向迁移（PENDING -> PROCESSING -> SUCCESS/FAILED，PENDING -> FAILED）。
        目标状态与当前状态不符合迁移规则时不做任何修改并返回 False。
        """
        predecessors = ALLOWED_PREDECESSORS.get(status)
        if predecessors is None:
            raise ValueError(f"不支持的任务状态: {status}")

        now = datetime.now()
        values = {"status": status, "update_time": now}
        if status in TERMINAL_STATUSES:
            values["end_time"] = now
        if status == EXPORT_TASK_STATUS["FAILED"]:
            values["error_message"] = error_message or "导出失败"

        stmt = (
            update(ExportTask)
            .where(ExportTask.task_id == task_id, ExportTask.status.in_(predecessors))
            .values(**values)
        )
        with self.session_factory() as db:
            result = db.execute(stmt)
            db.commit()
            changed = result.rowcount > 0

        if not changed:
            logger.debug(f"任务 {task_id} 状态未变更: 目标状态 {status} 不满足迁移规则")
        return changed

    def update_progress(self, task_id: str, processed_count: int, progress: float) -> bool:
        """更新任务进度，已处理数量只增不减"""
        stmt = (
            update(ExportTask)
            .where(
                ExportTask.task_id == task_id,
                ExportTask.processed_count <= processed_count,
                ExportTask.status.not_in(TERMINAL_STATUSES),
            )
            .values(processed_count=processed_count, progress=progress, update_time=datetime.now())
        )
        with self.session_factory() as db:
            result = db.execute(stmt)
            db.commit()
            return result.rowcount > 0

    def update_file_info(self, task_id: str, file_path: str, file_name: str, file_size: int) -> bool:
        """更新文件信息"""
        stmt = (
            update(ExportTask)
            .where(ExportTask.task_id == task_id)
            .values(file_path=file_path, file_name=file_name, file_size=file_size, update_time=datetime.now())
        )
        with self.session_factory() as db:
            result = db.execute(stmt)
            db.commit()
            return result.rowcount > 0

    def count_processing_tasks(self) -> int:
        """查询正在处理的任务数量"""
        stmt = select(func.count(ExportTask.id)).where(
            ExportTask.status == EXPORT_TASK_STATUS["PROCESSING"]
        )
        with self.session_factory() as db:
            return int(db.execute(stmt).scalar() or 0)

    def list_by_creator(self, create_by: str, limit: int) -> List[ExportTask]:
        """查询创建人的导出任务列表（最新的在前）"""
        stmt = (
            select(ExportTask)
            .where(ExportTask.create_by == create_by)
            .order_by(ExportTask.create_time.desc(), ExportTask.id.desc())
            .limit(limit)
        )
        with self.session_factory() as db:
            tasks = list(db.execute(stmt).scalars().all())
            for task in tasks:
                db.expunge(task)
            return tasks
