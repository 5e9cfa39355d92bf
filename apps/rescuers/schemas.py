from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from .models import BatteryStatus


class LocationUpdate(BaseModel):
    """实时通道上报的位置"""
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    altitude: Optional[float] = None
    accuracy: Optional[float] = Field(None, ge=0)
    timestamp: Optional[datetime] = None


class DeviceStatusUpdate(BaseModel):
    """实时通道上报的设备状态"""
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    battery_level: int = Field(..., alias="batteryLevel", ge=0, le=100)
    battery_status: BatteryStatus = Field(..., alias="batteryStatus")


class DeviceUpdate(BaseModel):
    """更新设备信息，未提供的字段保持原值"""
    device_model: Optional[str] = Field(None, max_length=100)
    battery_level: Optional[int] = Field(None, ge=0, le=100)
    battery_status: Optional[BatteryStatus] = None


class DeviceOut(BaseModel):
    id: int
    user_id: int
    device_model: Optional[str] = None
    battery_level: Optional[int] = None
    battery_status: BatteryStatus
    last_seen: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LocationPoint(BaseModel):
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    accuracy: Optional[float] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class RescuerSummary(BaseModel):
    """搜救队员概览：身份、最新设备状态、最新位置"""
    id: int
    username: str
    device_model: Optional[str] = None
    battery_level: Optional[int] = None
    battery_status: Optional[BatteryStatus] = None
    last_seen: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    accuracy: Optional[float] = None
    last_location_time: Optional[datetime] = None
