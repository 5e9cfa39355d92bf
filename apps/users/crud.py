from typing import Optional
from tortoise.exceptions import BaseORMException
from loguru import logger
from core.exceptions import StorageError
from .models import User

async def get_user(user_id: int) -> Optional[User]:
    try:
        return await User.get_or_none(id=user_id)
    except BaseORMException as e:
        logger.error(f"查询用户 {user_id} 失败: {str(e)}")
        raise StorageError() from e
