"""
User Export Source
用户数据导出数据源：按条件统计总数、按偏移量分批查询
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.exceptions import ExportValidationError
from app.core.logging import logger
from app.models.user import User

SessionFactory = Callable[[], Session]

# 可直接按等值过滤的列（请求中的驼峰字段名 -> 模型属性）
_EQUALITY_COLUMNS = {
    "id": "id",
    "realName": "real_name",
    "real_name": "real_name",
    "email": "email",
    "phone": "phone",
    "age": "age",
    "gender": "gender",
    "position": "position",
}

# 导出列顺序，与 USER_EXPORT_HEADERS 一一对应
_EXPORT_COLUMNS = (
    "id", "username", "real_name", "email", "phone", "age", "gender",
    "department", "position", "salary", "join_time", "create_time", "update_time",
)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ExportValidationError(f"时间格式不正确: {value}")


class UserExportSource:
    """用户表数据源

    每次调用都使用独立的数据库会话，可在多个导出线程中共享同一个实例。
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def _build_conditions(self, params: Optional[Dict[str, Any]]) -> List[Any]:
        params = params or {}
        conditions = []

        username = params.get("username")
        if username:
            conditions.append(User.username.like(f"%{username}%"))

        department = params.get("department")
        if department:
            conditions.append(User.department == department)

        start_time = _parse_datetime(params.get("startTime"))
        if start_time is not None:
            conditions.append(User.create_time >= start_time)

        end_time = _parse_datetime(params.get("endTime"))
        if end_time is not None:
            conditions.append(User.create_time <= end_time)

        for key, value in params.items():
            attr = _EQUALITY_COLUMNS.get(key)
            if attr is None or value is None or value == "":
                continue
            conditions.append(getattr(User, attr) == value)

        return conditions

    def count_for_export(self, params: Optional[Dict[str, Any]]) -> int:
        """统计符合条件的用户总数"""
        stmt = select(func.count(User.id)).where(*self._build_conditions(params))
        with self.session_factory() as db:
            total = db.execute(stmt).scalar() or 0
        logger.debug(f"导出数据统计: params={params}, total={total}")
        return int(total)

    def fetch_batch(self, params: Optional[Dict[str, Any]], offset: int, limit: int) -> List[Tuple[Any, ...]]:
        """按 id 顺序查询一批用户数据，返回按导出列顺序排列的元组"""
        columns = [getattr(User, name) for name in _EXPORT_COLUMNS]
        stmt = (
            select(*columns)
            .where(*self._build_conditions(params))
            .order_by(User.id)
            .offset(offset)
            .limit(limit)
        )
        with self.session_factory() as db:
            return [tuple(row) for row in db.execute(stmt).all()]

    def fetch_all(self, params: Optional[Dict[str, Any]]) -> List[Tuple[Any, ...]]:
        """一次性查询全部符合条件的用户数据（仅用于性能对比）"""
        columns = [getattr(User, name) for name in _EXPORT_COLUMNS]
        stmt = select(*columns).where(*self._build_conditions(params)).order_by(User.id)
        with self.session_factory() as db:
            return [tuple(row) for row in db.execute(stmt).all()]
