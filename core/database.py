from pathlib import Path
from tortoise import Tortoise
from core.settings import settings
from core.database_config import get_db_config
from loguru import logger
from tenacity import retry, stop_after_attempt, wait_exponential

TORTOISE_ORM = get_db_config()

def _ensure_sqlite_dir(db_url: str) -> None:
    """SQLite 文件所在目录不存在时先创建"""
    if settings.get_db_type(db_url) != 'sqlite':
        return
    path = db_url.split("://", 1)[1]
    if path and path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

@retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=4, max=10))
async def init_db():
    try:
        logger.info("正在初始化数据库连接...")
        _ensure_sqlite_dir(settings.DATABASE_URL)
        await Tortoise.init(config=TORTOISE_ORM)
        logger.info("数据库连接初始化成功")

        logger.info("正在生成数据库 schema...")
        await Tortoise.generate_schemas(safe=True)
        logger.info("数据库 schema 生成成功")
    except Exception as e:
        logger.error(f"数据库初始化失败: {str(e)}")
        raise

async def close_db():
    try:
        logger.info("正在关闭数据库连接...")
        await Tortoise.close_connections()
        logger.info("数据库连接已关闭")
    except Exception as e:
        logger.error(f"关闭数据库连接时发生错误: {str(e)}")
        raise
