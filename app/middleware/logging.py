"""
Logging Middleware
"""

import time
from datetime import datetime

from fastapi import Request

from app.core.logging import logger


async def logging_middleware(request: Request, call_next):
    """请求日志中间件：记录方法、路径、状态码与耗时"""
    start_time = time.time()
    logger.debug(f"请求开始: {request.method} {request.url.path}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(
        f"请求结束: {request.method} {request.url.path} "
        f"状态码: {response.status_code} 处理时间: {process_time:.3f}s"
    )

    response.headers["X-Process-Time"] = f"{process_time:.6f}"
    response.headers["X-Timestamp"] = datetime.now().isoformat()
    return response
