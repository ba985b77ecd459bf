"""
Performance API Routes
导出性能对比API路由
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.exceptions import CustomException
from app.core.logging import logger
from app.core.response import success_response
from app.dependencies.services import get_monitor_service, get_performance_service
from app.schemas.export import ExportRequest
from app.services.monitor_service import MonitorService
from app.services.performance_service import PerformanceService

router = APIRouter()


@router.post("/compare")
def performance_compare(
    export_request: ExportRequest,
    service: PerformanceService = Depends(get_performance_service),
):
    """流式导出与传统导出的性能对比"""
    try:
        logger.info(f"API请求: 性能对比测试，任务名: {export_request.task_name}")
        return success_response(service.compare(export_request), "性能对比测试完成")
    except CustomException:
        raise
    except Exception as e:
        logger.error(f"性能对比测试API错误: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="性能对比测试失败"
        )


@router.get("/system-info")
def get_system_info(service: MonitorService = Depends(get_monitor_service)):
    """获取进程内存使用情况"""
    info = service.get_memory_info()
    return success_response({"memory": info["processMemory"], "timestamp": info["timestamp"]})
