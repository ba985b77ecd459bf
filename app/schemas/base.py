"""
Base Schema for Pydantic
"""

from pydantic import BaseModel as PydanticBaseModel


class BaseSchema(PydanticBaseModel):
    """基础模式类：接口字段使用驼峰别名，同时允许按字段名赋值"""
    class Config:
        from_attributes = True
        populate_by_name = True
