"""
Response Module
"""

from typing import Any, Optional, Dict
from datetime import datetime

def success_response(data: Any = None, message: str = "ok") -> Dict[str, Any]:
    """创建成功响应"""
    return {
        "success": True,
        "code": 0,
        "message": message,
        "data": data,
        "timestamp": datetime.now().isoformat(),
    }

def error_response(message: str, code: Optional[str] = None, details: Any = None) -> Dict[str, Any]:
    """创建错误响应"""
    body = {
        "success": False,
        "error": True,
        "message": message,
        "timestamp": datetime.now().isoformat(),
    }
    if code:
        body["code"] = code
    if details is not None:
        body["details"] = details
    return body
