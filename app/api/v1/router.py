"""
API Router Configuration
"""

from fastapi import APIRouter

from app.api.v1.routes import exports, monitor, performance

# 创建API路由器
api_router = APIRouter()

# 注册各个模块的路由
api_router.include_router(
    exports.router,
    prefix="/export",
    tags=["数据导出"]
)
api_router.include_router(
    monitor.router,
    prefix="/monitor",
    tags=["系统监控"]
)
api_router.include_router(
    performance.router,
    prefix="/performance",
    tags=["性能对比"]
)
