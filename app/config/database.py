"""
Database Configuration
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from app.config.settings import settings


def _engine_kwargs(url: str) -> dict:
    """根据数据库类型生成引擎参数"""
    if url.startswith("sqlite"):
        # SQLite 需要允许跨线程访问（导出任务在线程池中执行）
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.DATABASE_POOL_SIZE,
        "pool_recycle": 3600,
    }


# 创建数据库引擎
engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

# 会话工厂
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 模型基类
Base = declarative_base()
