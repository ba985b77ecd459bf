"""
FastAPI Application Entry Point
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import make_url

from app.api.v1.router import api_router
from app.config.settings import settings
from app.core.exceptions import setup_exception_handlers
from app.core.logging import logger
from app.middleware.logging import logging_middleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理 - 启动时建表并检查中间件连接，关闭时释放线程池"""
    logger.info("正在检查中间件连接...")
    logger.info(f"服务监听: {settings.HOST}:{settings.PORT}")

    # 检查数据库并建表
    try:
        logger.info(f"连接数据库: {make_url(settings.DATABASE_URL).render_as_string(hide_password=True)}")
        from app.config.database import Base, engine
        from app import models  # noqa: F401  注册模型
        Base.metadata.create_all(bind=engine)
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
        logger.info("✅ 数据库连接正常")
    except Exception as e:
        logger.error(f"❌ 数据库连接失败: {e}")

    # 检查 Redis
    try:
        logger.info(f"连接 Redis: {settings.REDIS_URL}")
        from app.config.redis import redis_client
        redis_client.ping()
        logger.info("✅ Redis 连接正常")
    except Exception as e:
        logger.error(f"❌ Redis 连接失败: {e}")

    # 检查导出目录
    try:
        os.makedirs(settings.EXPORT_TEMP_PATH, exist_ok=True)
        logger.info(f"✅ 导出目录就绪: {settings.EXPORT_TEMP_PATH}")
    except OSError as e:
        logger.error(f"❌ 导出目录不可用: {e}")

    logger.info("🚀 服务器启动完成")
    yield

    from app.config.executors import shutdown_executors
    shutdown_executors()
    logger.info("👋 服务器关闭")


app = FastAPI(
    title=settings.APP_NAME,
    description="大数据量 Excel 流式导出服务",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# 添加CORS中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# 请求日志中间件（记录每个请求的状态码与耗时）
app.middleware("http")(logging_middleware)

# 注册API路由，统一使用 /api 前缀
app.include_router(api_router, prefix="/api")

# 设置异常处理器
setup_exception_handlers(app)


@app.get("/")
async def root():
    """根路径"""
    return {"message": settings.APP_NAME, "version": settings.APP_VERSION}


@app.get("/health")
def health_check():
    """健康检查 - 检查数据库与 Redis 连接状态"""
    health_status = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "services": {}
    }

    # 检查数据库
    try:
        from app.config.database import engine
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
        health_status["services"]["database"] = {"status": "healthy"}
    except Exception as e:
        logger.warning(f"数据库健康检查失败: {e}")
        health_status["status"] = "unhealthy"
        health_status["services"]["database"] = {"status": "error"}

    # 检查 Redis
    from app.core.cache import cache_manager
    if cache_manager.ping():
        health_status["services"]["redis"] = {"status": "healthy"}
    else:
        health_status["status"] = "unhealthy"
        health_status["services"]["redis"] = {"status": "error"}

    return health_status
