from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query

from api.v1.deps import get_current_active_user
from apps.users.models import User
from .crud import get_rescuers, get_rescuer, get_location_history, update_device
from .schemas import DeviceOut, DeviceUpdate, LocationPoint

router = APIRouter()


@router.get("/")
async def list_rescuers_api(current_user: User = Depends(get_current_active_user)):
    """获取所有搜救队员，附带最新设备状态和最新位置"""
    return {"rescuers": await get_rescuers()}


@router.get("/{rescuer_id}")
async def get_rescuer_api(rescuer_id: int, current_user: User = Depends(get_current_active_user)):
    """获取单个搜救队员"""
    return {"rescuer": await get_rescuer(rescuer_id)}


@router.get("/{rescuer_id}/history")
async def rescuer_history_api(
    rescuer_id: int,
    start_time: Optional[datetime] = Query(None, description="起始时间（含）"),
    end_time: Optional[datetime] = Query(None, description="结束时间（含）"),
    current_user: User = Depends(get_current_active_user)
):
    """获取搜救队员历史轨迹，按时间倒序"""
    rows = await get_location_history(rescuer_id, start_time, end_time)
    return {"history": [LocationPoint.model_validate(row) for row in rows]}


@router.put("/{rescuer_id}/device")
async def update_device_api(
    rescuer_id: int,
    device: DeviceUpdate,
    current_user: User = Depends(get_current_active_user)
):
    """更新搜救队员设备信息"""
    updated = await update_device(rescuer_id, device)
    return {"device": DeviceOut.model_validate(updated)}
