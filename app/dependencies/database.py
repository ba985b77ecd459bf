"""
Database Dependencies
"""

from app.config.database import SessionLocal


def get_session_factory():
    """获取会话工厂（服务层每个操作自行打开短会话）"""
    return SessionLocal
