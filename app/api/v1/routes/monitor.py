"""
Monitor API Routes
系统监控API路由
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.logging import logger
from app.core.response import success_response
from app.dependencies.services import get_monitor_service
from app.services.monitor_service import MonitorService

router = APIRouter()


@router.get("/memory")
def get_memory_info(service: MonitorService = Depends(get_monitor_service)):
    """获取内存使用情况"""
    try:
        return success_response(service.get_memory_info())
    except Exception as e:
        logger.error(f"获取内存信息失败: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取内存信息失败"
        )


@router.get("/gc")
def get_gc_info(service: MonitorService = Depends(get_monitor_service)):
    """获取垃圾回收统计"""
    try:
        return success_response(service.get_gc_info())
    except Exception as e:
        logger.error(f"获取GC信息失败: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取GC信息失败"
        )


@router.post("/gc/trigger")
def trigger_gc(service: MonitorService = Depends(get_monitor_service)):
    """手动触发垃圾回收"""
    logger.info("API请求: 手动触发GC")
    try:
        return success_response(service.trigger_gc(), "GC执行完成")
    except Exception as e:
        logger.error(f"手动触发GC失败: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="手动触发GC失败"
        )


@router.get("/system")
def get_system_info(service: MonitorService = Depends(get_monitor_service)):
    """获取系统信息"""
    try:
        return success_response(service.get_system_info())
    except Exception as e:
        logger.error(f"获取系统信息失败: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取系统信息失败"
        )
