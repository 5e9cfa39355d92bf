from typing import Dict, Any, List
from tortoise import Tortoise
from tortoise.backends.base.config_generator import generate_config
from loguru import logger
from core.settings import settings

# 所有包含 Tortoise 模型的模块
MODEL_MODULES: List[str] = [
    "apps.users.models",
    "apps.coordinates.models",
    "apps.rescuers.models",
]

def get_db_config(db_url: str = None) -> Dict[str, Any]:
    db_url = db_url or settings.DATABASE_URL
    try:
        db_type = settings.get_db_type(db_url)
        config = generate_config(
            db_url=db_url,
            app_modules={'models': MODEL_MODULES},
            connection_label='default'
        )

        # 添加对应数据库类型的连接池配置
        for db_config in config['connections'].values():
            db_config['credentials'].update(settings.get_db_pool_config(db_type))

        return config
    except Exception as e:
        logger.error(f"生成数据库配置失败: {str(e)}")
        raise

# 数据库健康检查
async def check_db_health() -> bool:
    try:
        connection = Tortoise.get_connection('default')
        await connection.execute_query('SELECT 1')
        return True
    except Exception as e:
        logger.error(f"数据库健康检查失败: {str(e)}")
        return False
