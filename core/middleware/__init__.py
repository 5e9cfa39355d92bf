# -*- coding: utf-8 -*-
"""
中间件模块
包含CORS配置和全局异常处理。
"""

from .cors import setup_cors_middleware
from .error_handler import (
    validation_exception_handler,
    not_found_exception_handler,
    custom_exception_handler,
    general_exception_handler,
    setup_exception_handlers
)

__all__ = [
    'setup_cors_middleware',
    'setup_exception_handlers',
    'validation_exception_handler',
    'not_found_exception_handler',
    'custom_exception_handler',
    'general_exception_handler',
]
