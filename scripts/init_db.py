"""
Database Initialization Script
"""

import sys

from app.config.database import Base, engine
from app.core.logging import logger
from app.models import *  # noqa: F401,F403


def init_database():
    """初始化数据库"""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info(f"数据库初始化成功，表: {', '.join(Base.metadata.tables)}")
        return True
    except Exception as e:
        logger.error(f"数据库初始化失败: {e}", exc_info=True)
        return False


def drop_database():
    """删除数据库表"""
    try:
        Base.metadata.drop_all(bind=engine)
        logger.info("数据库删除成功")
        return True
    except Exception as e:
        logger.error(f"数据库删除失败: {e}", exc_info=True)
        return False


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "drop":
        ok = drop_database()
    else:
        ok = init_database()
    sys.exit(0 if ok else 1)
