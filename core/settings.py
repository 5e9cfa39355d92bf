# -*- coding: utf-8 -*-
"""
统一配置文件
整合了项目的所有配置信息，包括基础应用配置、数据库配置、安全配置、
日志配置、坐标转换配置、实时通道配置和分页配置等。
"""

from pydantic_settings import BaseSettings
from typing import List, Dict, Any
import os
from urllib.parse import urlparse
from loguru import logger


class Settings(BaseSettings):
    """统一配置类"""

    # ==================== 基础应用配置 ====================
    PROJECT_NAME: str = "Rescue Tracker"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "YOUR_SECRET_KEY_HERE"  # 在生产环境中应该使用环境变量
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours
    BACKEND_CORS_ORIGINS: List[str] = []

    # ==================== 数据库配置 ====================
    DATABASE_URL: str = "sqlite://./data/rescue.db"

    # 不同数据库类型的连接池配置
    DB_POOL_CONFIGS: Dict[str, Dict[str, Any]] = {
        'sqlite': {},
        'postgres': {
            "maxsize": 20,
            "minsize": 1,
            "max_inactive_connection_lifetime": 300,
        },
        'mysql': {
            "maxsize": 20,
            "minsize": 1,
            "pool_recycle": 300
        }
    }

    # ==================== 日志配置 ====================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_ROTATION: str = "100 MB"

    # ==================== 坐标转换配置 ====================
    CONVERTERS_HANDLE_MAX_EXCEL_SIZE: int = 5 * 1024 * 1024  # 5MB

    # ==================== 实时通道配置 ====================
    HUB_QUEUE_MAXSIZE: int = 1000  # 广播队列上限，队列满时丢弃新事件

    # ==================== API配置 ====================
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # ==================== 系统常量 ====================
    ROLE_RESCUER: str = "rescuer"
    ROLE_ADMIN: str = "admin"

    def get_db_type(self, db_url: str = None) -> str:
        """获取数据库类型"""
        if db_url is None:
            db_url = self.DATABASE_URL
        parsed = urlparse(db_url)
        return parsed.scheme.split('+')[0]

    def get_db_pool_config(self, db_type: str = None) -> Dict[str, Any]:
        """获取数据库连接池配置"""
        if db_type is None:
            db_type = self.get_db_type()

        if db_type not in self.DB_POOL_CONFIGS:
            logger.warning(f"未找到数据库类型 {db_type} 的连接池配置，将使用默认配置")
            db_type = 'sqlite'

        return self.DB_POOL_CONFIGS[db_type]

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"  # 忽略未定义的环境变量，避免ValidationError


# 创建全局配置实例
settings = Settings()
