from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

class Coordinate(BaseModel):
    """坐标，经纬度为十进制度"""
    lng: float = Field(..., description="经度")
    lat: float = Field(..., description="纬度")
    altitude: Optional[float] = Field(None, description="海拔高度(米)")
    accuracy: Optional[float] = Field(None, description="定位精度(米)")

class CoordinateIn(Coordinate):
    """请求中的坐标，校验经纬度范围"""
    lng: float = Field(..., ge=-180, le=180, description="经度 (-180 到 180)")
    lat: float = Field(..., ge=-90, le=90, description="纬度 (-90 到 90)")

class ConversionResult(BaseModel):
    original: Coordinate
    converted: Coordinate

class CoordinateConversionRequest(BaseModel):
    """坐标转换请求模型

    坐标系用字符串接收，缺失或不支持的取值返回 400 而不是 422。
    """
    model_config = ConfigDict(populate_by_name=True)

    coordinates: List[CoordinateIn] = Field(..., description="坐标列表")
    from_sys: Optional[str] = Field(None, alias="from", description="原始坐标系统，可选值：'WGS84', 'GCJ02', 'BD09'")
    to_sys: Optional[str] = Field(None, alias="to", description="目标坐标系统，可选值：'WGS84', 'GCJ02', 'BD09'")
    notes: Optional[str] = Field(None, max_length=500, description="备注")

class CoordinateConversionResponse(BaseModel):
    """坐标转换响应模型"""
    results: List[ConversionResult]
    recorded: bool = Field(..., description="转换记录是否已保存")

class SingleConversionResponse(BaseModel):
    lng: float
    lat: float
    from_sys: str
    to_sys: str

class MapUrlRequest(BaseModel):
    url: str = Field(..., min_length=1, description="地图分享链接")

class MapUrlResponse(BaseModel):
    success: bool = True
    coordinates: Coordinate
    system: str = Field(..., description="链接所用坐标系")
    provider: str = Field(..., description="地图服务商")

class ConversionRecordOut(BaseModel):
    """转换历史记录"""
    id: int
    original_coordinates: List[Coordinate]
    converted_coordinates: List[Coordinate]
    from_system: str
    to_system: str
    timestamp: datetime
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
