"""共用的Pydantic模型

这个模块包含了项目中共用的Pydantic模型定义。
"""

from typing import Generic, TypeVar, List
from pydantic import BaseModel

# 用于泛型的类型变量
T = TypeVar('T')

class HistoryPage(BaseModel, Generic[T]):
    """分页历史记录响应"""
    history: List[T]
    total: int
    page: int
    limit: int
