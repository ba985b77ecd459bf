"""
File Utils
"""

import os
import re
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from app.core.constants import EXPORT_FILE_TIMESTAMP_FORMAT, XLSX_EXTENSION

# 文件名中不允许出现的字符
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')

def ensure_directory(path: str) -> str:
    """确保目录存在，创建失败时抛出 OSError"""
    os.makedirs(path, exist_ok=True)
    return path

def get_file_size(file_path: str) -> int:
    """获取文件大小"""
    return os.path.getsize(file_path)

def is_readable_file(file_path: Optional[str]) -> bool:
    """文件存在且可读"""
    if not file_path:
        return False
    return os.path.isfile(file_path) and os.access(file_path, os.R_OK)

def sanitize_filename(name: str) -> str:
    """去除文件名中的非法字符"""
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", name).strip().strip(".")
    return cleaned or "export"

def build_export_filename(task_name: str, timestamp: Optional[datetime] = None) -> str:
    """生成导出文件名：{任务名}_{yyyyMMdd_HHmmss}.xlsx"""
    ts = (timestamp or datetime.now()).strftime(EXPORT_FILE_TIMESTAMP_FORMAT)
    return f"{sanitize_filename(task_name)}_{ts}{XLSX_EXTENSION}"

def content_disposition(file_name: str) -> str:
    """构造附件下载头，文件名按 RFC 5987 编码以支持中文"""
    encoded = quote(file_name, safe="")
    return f"attachment; filename*=UTF-8''{encoded}"
