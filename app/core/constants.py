"""
Constants Module
"""

# 导出任务状态常量
EXPORT_TASK_STATUS = {
    "PENDING": "PENDING",
    "PROCESSING": "PROCESSING",
    "SUCCESS": "SUCCESS",
    "FAILED": "FAILED",
}

# 终态
TERMINAL_STATUSES = (EXPORT_TASK_STATUS["SUCCESS"], EXPORT_TASK_STATUS["FAILED"])

# 允许的前置状态：目标状态 -> 可从哪些状态迁移而来
ALLOWED_PREDECESSORS = {
    EXPORT_TASK_STATUS["PROCESSING"]: (EXPORT_TASK_STATUS["PENDING"],),
    EXPORT_TASK_STATUS["SUCCESS"]: (EXPORT_TASK_STATUS["PROCESSING"],),
    EXPORT_TASK_STATUS["FAILED"]: (EXPORT_TASK_STATUS["PENDING"], EXPORT_TASK_STATUS["PROCESSING"]),
}

# 缓存键前缀
CACHE_PREFIXES = {
    "EXPORT_TASK": "export:task:",
}

# 导出文件
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLSX_EXTENSION = ".xlsx"
EXPORT_FILE_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

# 用户数据导出表头（列顺序与 UserExportSource.fetch_batch 一致）
USER_EXPORT_HEADERS = [
    "用户ID", "用户名", "真实姓名", "邮箱", "手机号", "年龄", "性别",
    "部门", "职位", "薪资", "入职时间", "创建时间", "更新时间",
]
