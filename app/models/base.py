"""
Base Model
"""

from sqlalchemy import Column, BigInteger, Integer
from app.config.database import Base

class BaseModel(Base):
    """模型基类"""
    __abstract__ = True

    # SQLite 只对 INTEGER PRIMARY KEY 自增
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True, comment="主键ID")
