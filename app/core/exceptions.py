"""
Exception Handlers
"""

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.logging import logger
from app.core.response import error_response

class ErrorCode:
    """错误代码定义"""
    # 请求参数错误
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # 提交阶段错误
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    NO_DATA = "NO_DATA"

    # 任务查询错误
    TASK_NOT_FOUND = "TASK_NOT_FOUND"

    # 下载状态错误
    TASK_NOT_COMPLETED = "TASK_NOT_COMPLETED"
    FILE_PATH_MISSING = "FILE_PATH_MISSING"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"

    # 执行错误
    EXPORT_EXECUTION_FAILED = "EXPORT_EXECUTION_FAILED"

class CustomException(Exception):
    """自定义异常类"""
    status_code = 500

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(self.message)

class ExportValidationError(CustomException):
    """请求缺少必要字段"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(ErrorCode.VALIDATION_ERROR, message)

class CapacityError(CustomException):
    """处理中的导出任务数已达上限"""
    status_code = 429

    def __init__(self, message: str = "当前导出任务过多，请稍后再试"):
        super().__init__(ErrorCode.CAPACITY_EXCEEDED, message)

class NoDataError(CustomException):
    """没有符合条件的数据"""
    status_code = 400

    def __init__(self, message: str = "没有符合条件的数据可导出"):
        super().__init__(ErrorCode.NO_DATA, message)

class TaskNotFoundError(CustomException):
    """导出任务不存在"""
    status_code = 404

    def __init__(self, message: str = "导出任务不存在"):
        super().__init__(ErrorCode.TASK_NOT_FOUND, message)

class TaskStateError(CustomException):
    """任务状态不允许当前操作（未完成、缺少文件等）"""
    status_code = 409

class ExportExecutionError(CustomException):
    """导出执行过程中的失败"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(ErrorCode.EXPORT_EXECUTION_FAILED, message)

def setup_exception_handlers(app: FastAPI):
    """设置异常处理器"""

    @app.exception_handler(CustomException)
    async def custom_exception_handler(request: Request, exc: CustomException):
        """业务异常处理器"""
        logger.warning(f"业务异常: code={exc.code}, message={exc.message}, path={request.url.path}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.message, exc.code)
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """HTTP异常处理器"""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.detail)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """请求验证异常处理器"""
        return JSONResponse(
            status_code=422,
            content=error_response("请求参数验证失败", ErrorCode.VALIDATION_ERROR, jsonable_encoder(exc.errors()))
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(request: Request, exc: StarletteHTTPException):
        """Starlette异常处理器"""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.detail)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """通用异常处理器"""
        logger.error(f"未处理的异常: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_response("服务器内部错误")
        )
