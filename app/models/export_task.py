"""
Export Task Model
导出任务模型
"""

from sqlalchemy import Column, String, BigInteger, DateTime, Text, Float
from app.models.base import BaseModel


class ExportTask(BaseModel):
    """导出任务模型"""
    __tablename__ = "export_task"

    task_id = Column(String(64), nullable=False, unique=True, index=True, comment="任务唯一标识")
    task_name = Column(String(200), nullable=False, comment="任务名称")
    export_type = Column(String(50), nullable=False, comment="导出类型")
    status = Column(String(20), nullable=False, default="PENDING", index=True, comment="状态：PENDING/PROCESSING/SUCCESS/FAILED")
    total_count = Column(BigInteger, nullable=False, default=0, comment="总记录数")
    processed_count = Column(BigInteger, nullable=False, default=0, comment="已处理记录数")
    progress = Column(Float, nullable=False, default=0.0, comment="进度百分比")
    file_path = Column(String(500), comment="文件路径")
    file_name = Column(String(255), comment="文件名")
    file_size = Column(BigInteger, comment="文件大小(字节)")
    error_message = Column(Text, comment="错误信息")
    create_by = Column(String(100), index=True, comment="创建人")
    start_time = Column(DateTime, comment="开始时间")
    end_time = Column(DateTime, comment="结束时间")
    create_time = Column(DateTime, comment="创建时间")
    update_time = Column(DateTime, comment="更新时间")

    def to_dict(self) -> dict:
        """转换为可缓存的字典"""
        return {
            "task_id": self.task_id,
            "task_name": self.task_name,
            "export_type": self.export_type,
            "status": self.status,
            "total_count": self.total_count,
            "processed_count": self.processed_count,
            "progress": self.progress,
            "file_path": self.file_path,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "error_message": self.error_message,
            "create_by": self.create_by,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "create_time": self.create_time.isoformat() if self.create_time else None,
            "update_time": self.update_time.isoformat() if self.update_time else None,
        }

    def __repr__(self):
        return f"<ExportTask(task_id={self.task_id}, export_type={self.export_type}, status={self.status})>"
