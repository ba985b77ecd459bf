"""
Export API Routes
Excel 导出API路由
"""

from typing import BinaryIO, Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from app.config.settings import settings
from app.core.exceptions import CustomException
from app.core.logging import logger
from app.core.response import success_response
from app.dependencies.services import get_download_service, get_export_service
from app.schemas.export import ExportRequest
from app.services.export_service import ExcelExportService
from app.services.file_download_service import FileDownloadService

router = APIRouter()

DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _iter_file(stream: BinaryIO) -> Iterator[bytes]:
    with stream:
        while True:
            chunk = stream.read(DOWNLOAD_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk


@router.post("/start")
def start_export(
    export_request: ExportRequest,
    service: ExcelExportService = Depends(get_export_service),
):
    """开始导出任务"""
    try:
        logger.info(
            f"API请求: 开始导出，类型: {export_request.export_type}, 任务名: {export_request.task_name}, "
            f"异步: {export_request.async_export}, 创建人: {export_request.create_by}"
        )
        data = service.start_export(export_request)
        message = "导出任务已创建" if export_request.async_export else "导出完成"
        return success_response(data, message)
    except CustomException:
        raise
    except Exception as e:
        logger.error(f"开始导出API错误: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="开始导出失败"
        )


@router.get("/status/{task_id}")
def get_export_status(
    task_id: str,
    service: ExcelExportService = Depends(get_export_service),
):
    """查询导出任务状态"""
    try:
        logger.debug(f"API请求: 查询导出状态，任务ID: {task_id}")
        return success_response(service.get_export_status(task_id))
    except CustomException:
        raise
    except Exception as e:
        logger.error(f"查询导出状态API错误: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="查询导出状态失败"
        )


@router.get("/download/{task_id}")
def download_file(
    task_id: str,
    service: FileDownloadService = Depends(get_download_service),
):
    """下载导出文件"""
    logger.info(f"API请求: 下载导出文件，任务ID: {task_id}")
    stream, headers = service.resolve(task_id)
    return StreamingResponse(
        _iter_file(stream),
        media_type=headers["Content-Type"],
        headers=headers,
    )


@router.get("/tasks")
def list_user_tasks(
    create_by: str = Query(settings.EXPORT_DEFAULT_CREATOR, alias="createBy", description="创建人"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="返回数量"),
    service: ExcelExportService = Depends(get_export_service),
):
    """查询创建人的导出任务列表"""
    try:
        logger.info(f"API请求: 查询导出任务列表，创建人: {create_by}, 数量: {limit}")
        tasks = service.list_user_tasks(create_by, limit)
        return success_response({"tasks": tasks, "total": len(tasks)})
    except CustomException:
        raise
    except Exception as e:
        logger.error(f"查询导出任务列表API错误: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="查询导出任务列表失败"
        )


@router.get("/file-info/{task_id}")
def get_file_info(
    task_id: str,
    service: FileDownloadService = Depends(get_download_service),
):
    """查询导出文件信息"""
    try:
        return success_response(service.get_file_info(task_id))
    except CustomException:
        raise
    except Exception as e:
        logger.error(f"查询文件信息API错误: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="查询文件信息失败"
        )


@router.get("/statistics")
def get_statistics(service: ExcelExportService = Depends(get_export_service)):
    """导出统计"""
    return success_response(service.get_statistics())
