"""
User Model
导出数据源：用户表
"""

from sqlalchemy import Column, String, Integer, DateTime, Float
from app.models.base import BaseModel


class User(BaseModel):
    """用户模型"""
    __tablename__ = "user"

    username = Column(String(50), nullable=False, index=True, comment="用户名")
    real_name = Column(String(50), comment="真实姓名")
    email = Column(String(100), comment="邮箱")
    phone = Column(String(20), comment="手机号")
    age = Column(Integer, comment="年龄")
    gender = Column(String(10), comment="性别")
    department = Column(String(50), index=True, comment="部门")
    position = Column(String(50), comment="职位")
    salary = Column(Float, comment="薪资")
    join_time = Column(DateTime, comment="入职时间")
    create_time = Column(DateTime, index=True, comment="创建时间")
    update_time = Column(DateTime, comment="更新时间")

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', department='{self.department}')>"
