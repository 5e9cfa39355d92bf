from typing import List, Optional, Sequence, Tuple, Union
from tortoise.exceptions import BaseORMException
from loguru import logger
from core.exceptions import InvalidPaginationError, StorageError
from core.settings import settings
from .models import ConversionRecord
from .schemas import ConversionResult


def _positive_int(value: Union[int, str], name: str) -> int:
    # 查询参数以字符串传入
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise InvalidPaginationError(f"{name} 必须为正整数")
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidPaginationError(f"{name} 必须为正整数")
    return value


def validate_pagination(
    page: Optional[Union[int, str]],
    page_size: Optional[Union[int, str]]
) -> Tuple[int, int]:
    """校验分页参数，缺省时使用第1页、每页 DEFAULT_PAGE_SIZE 条

    Raises:
        InvalidPaginationError: 参数不是正整数或每页条数超过上限
    """
    page = 1 if page is None else _positive_int(page, "page")
    page_size = settings.DEFAULT_PAGE_SIZE if page_size is None else _positive_int(page_size, "limit")

    if page_size > settings.MAX_PAGE_SIZE:
        raise InvalidPaginationError(f"limit 不能超过 {settings.MAX_PAGE_SIZE}")
    return page, page_size


async def create_conversion_record(
    user_id: int,
    results: Sequence[ConversionResult],
    from_system: str,
    to_system: str,
    notes: Optional[str] = None
) -> ConversionRecord:
    """保存一次转换的请求与结果

    Args:
        user_id: 发起转换的用户ID
        results: 转换结果
        from_system: 原始坐标系
        to_system: 目标坐标系
        notes: 备注

    Returns:
        ConversionRecord: 新建的转换记录

    Raises:
        StorageError: 写入失败
    """
    try:
        return await ConversionRecord.create(
            user_id=user_id,
            original_coordinates=[r.original.model_dump(exclude_none=True) for r in results],
            converted_coordinates=[r.converted.model_dump(exclude_none=True) for r in results],
            from_system=from_system,
            to_system=to_system,
            notes=notes,
        )
    except BaseORMException as e:
        logger.error(f"保存转换记录失败: user={user_id}, {str(e)}")
        raise StorageError("保存转换记录失败") from e


async def get_conversion_history(
    user_id: int,
    page: Optional[int] = None,
    page_size: Optional[int] = None
) -> Tuple[List[ConversionRecord], int]:
    """分页获取用户的转换历史，按时间倒序

    Returns:
        Tuple[List[ConversionRecord], int]: 当前页记录和该用户的记录总数
    """
    page, page_size = validate_pagination(page, page_size)
    offset = (page - 1) * page_size

    query = ConversionRecord.filter(user_id=user_id)
    try:
        rows = await query.order_by("-timestamp", "-id").offset(offset).limit(page_size)
        total = await query.count()
    except BaseORMException as e:
        logger.error(f"查询转换历史失败: user={user_id}, {str(e)}")
        raise StorageError("获取转换历史失败") from e
    return rows, total
