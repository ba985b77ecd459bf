"""
Export Schemas
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from app.schemas.base import BaseSchema


class ExportRequest(BaseSchema):
    """导出请求"""
    export_type: Optional[str] = Field(None, alias="exportType", description="导出类型")
    task_name: Optional[str] = Field(None, alias="taskName", description="任务名称")
    query_params: Optional[Dict[str, Any]] = Field(None, alias="queryParams", description="结构化查询条件")
    async_export: bool = Field(True, alias="async", description="是否异步执行")
    create_by: Optional[str] = Field(None, alias="createBy", description="创建人")

    # 简单查询字段，与 queryParams 合并
    username: Optional[str] = None
    department: Optional[str] = None
    start_time: Optional[datetime] = Field(None, alias="startTime")
    end_time: Optional[datetime] = Field(None, alias="endTime")


class ExportTaskResponse(BaseSchema):
    """导出任务快照"""
    task_id: str = Field(..., alias="taskId")
    task_name: Optional[str] = Field(None, alias="taskName")
    export_type: Optional[str] = Field(None, alias="exportType")
    status: str
    progress: float = 0.0
    total_count: int = Field(0, alias="totalCount")
    processed_count: int = Field(0, alias="processedCount")
    file_name: Optional[str] = Field(None, alias="fileName")
    file_size: Optional[int] = Field(None, alias="fileSize")
    download_url: Optional[str] = Field(None, alias="downloadUrl")
    error_message: Optional[str] = Field(None, alias="errorMessage")
    create_by: Optional[str] = Field(None, alias="createBy")
    create_time: Optional[str] = Field(None, alias="createTime")
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    update_time: Optional[str] = Field(None, alias="updateTime")


class ExportStatistics(BaseSchema):
    """导出统计"""
    processing_count: int = Field(..., alias="processingCount")
    timestamp: int


class ExportFileInfo(BaseSchema):
    """导出文件信息"""
    task_id: str = Field(..., alias="taskId")
    file_name: Optional[str] = Field(None, alias="fileName")
    file_size: Optional[int] = Field(None, alias="fileSize")
    status: str
    downloadable: bool
