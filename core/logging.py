import logging
import sys
from pathlib import Path
from loguru import logger
from core.settings import settings

class InterceptHandler(logging.Handler):
    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )

def noise_filter(record):
    """过滤掉热重载和数据库心跳产生的噪声日志"""
    message = record["message"]
    if "changes detected" in message.lower():
        return False
    if "SELECT 1" in message:
        return False
    return True

def setup_logging():
    log_file = Path(settings.LOG_FILE_PATH)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    log_format = settings.LOG_FORMAT
    log_level = settings.LOG_LEVEL

    logger.configure(
        handlers=[
            {"sink": sys.stdout, "format": log_format, "level": log_level, "filter": noise_filter},
            {"sink": str(log_file), "rotation": settings.LOG_ROTATION, "retention": "10 days", "compression": "zip", "format": log_format, "level": log_level, "enqueue": True, "filter": noise_filter},
        ],
        levels=[{"name": "DEBUG", "color": "<blue>"}],
    )

    # 拦截标准库的日志
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # uvicorn、fastapi、tortoise 的日志统一交给 loguru
    for _log in ['uvicorn', 'uvicorn.error', 'fastapi', 'tortoise']:
        _logger = logging.getLogger(_log)
        _logger.handlers = [InterceptHandler()]
        _logger.setLevel(logging.INFO)

    return logger
