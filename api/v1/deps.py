"""API依赖项

这个模块包含了API路由中使用的认证依赖项。身份令牌由外部身份服务签发，
这里只负责校验令牌并得到稳定的用户标识。
"""

from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from core.exceptions import AuthenticationError
from core.security import decode_token
from apps.users.crud import get_user
from apps.users.models import User

bearer_scheme = HTTPBearer(auto_error=False, description="Bearer 身份令牌")

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> User:
    """获取当前用户

    Raises:
        AuthenticationError: 未提供令牌、令牌无效或用户不存在
    """
    if credentials is None:
        raise AuthenticationError("未提供认证令牌")

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("无效的认证令牌")

    user_id = payload.get("sub")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise AuthenticationError("无效的认证令牌")

    user = await get_user(user_id)
    if user is None:
        raise AuthenticationError("无效的认证令牌")
    return user

async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """获取当前活跃用户"""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="用户未激活")
    return current_user
