"""
Seed Data Script
批量生成用户测试数据，用于演示大数据量导出

用法: python -m scripts.seed_data [数量] [批次大小]
"""

import random
import sys
from datetime import datetime, timedelta
from typing import Dict, List

from sqlalchemy import insert

from app.config.database import Base, SessionLocal, engine
from app.core.logging import logger
from app.models.user import User

DEPARTMENTS = ["技术部", "产品部", "运营部", "市场部", "财务部", "人事部"]
POSITIONS = ["工程师", "高级工程师", "经理", "专员", "主管", "总监"]
GENDERS = ["男", "女"]


def build_user_rows(count: int, start: int = 0, seed: int = 42) -> List[Dict]:
    """生成用户数据行"""
    rng = random.Random(seed + start)
    base_time = datetime(2020, 1, 1)
    rows = []
    for i in range(start, start + count):
        created = base_time + timedelta(minutes=i)
        rows.append({
            "username": f"user{i:07d}",
            "real_name": f"用户{i}",
            "email": f"user{i}@example.com",
            "phone": f"138{i:08d}",
            "age": rng.randint(20, 60),
            "gender": rng.choice(GENDERS),
            "department": rng.choice(DEPARTMENTS),
            "position": rng.choice(POSITIONS),
            "salary": round(rng.uniform(5000, 50000), 2),
            "join_time": created - timedelta(days=rng.randint(0, 3650)),
            "create_time": created,
            "update_time": created,
        })
    return rows


def seed_data(total: int = 100000, batch_size: int = 5000) -> bool:
    """种子数据"""
    try:
        Base.metadata.create_all(bind=engine)
        inserted = 0
        with SessionLocal() as db:
            while inserted < total:
                count = min(batch_size, total - inserted)
                db.execute(insert(User), build_user_rows(count, start=inserted))
                db.commit()
                inserted += count
                logger.info(f"已插入用户数据: {inserted}/{total}")
        logger.info("种子数据创建成功")
        return True
    except Exception as e:
        logger.error(f"种子数据创建失败: {e}", exc_info=True)
        return False


if __name__ == "__main__":
    total = int(sys.argv[1]) if len(sys.argv) > 1 else 100000
    batch_size = int(sys.argv[2]) if len(sys.argv) > 2 else 5000
    sys.exit(0 if seed_data(total, batch_size) else 1)
