from datetime import datetime, timezone
from typing import Dict, List, Optional
from tortoise.exceptions import BaseORMException
from loguru import logger
from core.exceptions import NotFoundError, StorageError
from core.settings import settings
from apps.users.models import User
from .models import BatteryStatus, Device, LocationHistory
from .schemas import DeviceUpdate, RescuerSummary


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """统一转换为 UTC，不带时区的时间按 UTC 处理

    库里的时间按文本比较，写入和查询必须使用同一时区。
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ==================== 位置轨迹 ====================

async def record_location(
    user_id: int,
    latitude: float,
    longitude: float,
    altitude: Optional[float] = None,
    accuracy: Optional[float] = None,
    timestamp: Optional[datetime] = None
) -> LocationHistory:
    """追加一条位置记录，经纬度按收到的值保存

    Raises:
        StorageError: 写入失败（包括用户不存在导致的外键错误）
    """
    try:
        return await LocationHistory.create(
            user_id=user_id,
            latitude=latitude,
            longitude=longitude,
            altitude=altitude,
            accuracy=accuracy,
            timestamp=as_utc(timestamp) or utcnow(),
        )
    except BaseORMException as e:
        logger.error(f"保存位置失败: user={user_id}, {str(e)}")
        raise StorageError("保存位置失败") from e


async def get_location_history(
    user_id: int,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None
) -> List[LocationHistory]:
    """获取轨迹，按时间倒序

    Args:
        user_id: 用户ID
        start_time: 起始时间（含），为空不限制
        end_time: 结束时间（含），为空不限制
    """
    start_time = as_utc(start_time)
    end_time = as_utc(end_time)
    query = LocationHistory.filter(user_id=user_id)
    if start_time is not None:
        query = query.filter(timestamp__gte=start_time)
    if end_time is not None:
        query = query.filter(timestamp__lte=end_time)

    try:
        return await query.order_by("-timestamp", "-id")
    except BaseORMException as e:
        logger.error(f"查询轨迹失败: user={user_id}, {str(e)}")
        raise StorageError("获取历史轨迹失败") from e


async def get_latest_location(user_id: int) -> Optional[LocationHistory]:
    try:
        return await LocationHistory.filter(user_id=user_id).order_by("-timestamp", "-id").first()
    except BaseORMException as e:
        logger.error(f"查询最新位置失败: user={user_id}, {str(e)}")
        raise StorageError() from e


# ==================== 设备状态 ====================

async def record_device_status(
    user_id: int,
    battery_level: int,
    battery_status: BatteryStatus
) -> Device:
    """写入设备状态，最新值覆盖旧值，每个用户只保留一行

    Raises:
        StorageError: 写入失败
    """
    try:
        device, created = await Device.update_or_create(
            defaults={
                "battery_level": battery_level,
                "battery_status": battery_status,
                "last_seen": utcnow(),
            },
            user_id=user_id,
        )
    except BaseORMException as e:
        logger.error(f"保存设备状态失败: user={user_id}, {str(e)}")
        raise StorageError("保存设备状态失败") from e
    if created:
        logger.info(f"用户 {user_id} 首次上报设备状态")
    return device


async def get_latest_device_status(user_id: int) -> Optional[Device]:
    """获取最新设备状态，从未上报过返回None"""
    try:
        return await Device.get_or_none(user_id=user_id)
    except BaseORMException as e:
        logger.error(f"查询设备状态失败: user={user_id}, {str(e)}")
        raise StorageError() from e


async def update_device(user_id: int, device_data: DeviceUpdate) -> Device:
    """更新设备信息，只覆盖提供的字段，并刷新最后上报时间

    Raises:
        NotFoundError: 该用户没有设备记录
    """
    device = await get_latest_device_status(user_id)
    if device is None:
        raise NotFoundError("设备信息不存在")

    update_data = device_data.model_dump(exclude_none=True)
    update_data["last_seen"] = utcnow()
    try:
        await device.update_from_dict(update_data).save()
    except BaseORMException as e:
        logger.error(f"更新设备信息失败: user={user_id}, {str(e)}")
        raise StorageError("更新设备信息失败") from e
    return device


# ==================== 队员概览 ====================

def _build_summary(user: User, device: Optional[Device], location: Optional[LocationHistory]) -> RescuerSummary:
    summary = RescuerSummary(id=user.id, username=user.username)
    if device is not None:
        summary.device_model = device.device_model
        summary.battery_level = device.battery_level
        summary.battery_status = device.battery_status
        summary.last_seen = device.last_seen
    if location is not None:
        summary.latitude = location.latitude
        summary.longitude = location.longitude
        summary.altitude = location.altitude
        summary.accuracy = location.accuracy
        summary.last_location_time = location.timestamp
    return summary


async def get_rescuers() -> List[RescuerSummary]:
    """所有搜救队员的概览"""
    try:
        users = await User.filter(role=settings.ROLE_RESCUER).order_by("id")
        devices: Dict[int, Device] = {
            device.user_id: device
            for device in await Device.filter(user_id__in=[u.id for u in users])
        }
    except BaseORMException as e:
        logger.error(f"查询搜救队员列表失败: {str(e)}")
        raise StorageError("获取搜救队员列表失败") from e

    return [
        _build_summary(user, devices.get(user.id), await get_latest_location(user.id))
        for user in users
    ]


async def get_rescuer(user_id: int) -> RescuerSummary:
    """单个搜救队员的概览

    Raises:
        NotFoundError: 用户不存在或不是搜救队员
    """
    try:
        user = await User.get_or_none(id=user_id, role=settings.ROLE_RESCUER)
    except BaseORMException as e:
        logger.error(f"查询搜救队员失败: user={user_id}, {str(e)}")
        raise StorageError("获取搜救队员信息失败") from e
    if user is None:
        raise NotFoundError("搜救队员不存在")

    return _build_summary(user, await get_latest_device_status(user_id), await get_latest_location(user_id))
