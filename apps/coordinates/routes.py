from typing import Optional
from fastapi import APIRouter, Depends, Query, UploadFile, File, Form

from api.v1.deps import get_current_active_user
from apps.users.models import User
from core.schemas import HistoryPage
from . import services
from .crud import get_conversion_history, validate_pagination
from .schemas import (
    CoordinateConversionRequest,
    CoordinateConversionResponse,
    ConversionRecordOut,
    MapUrlRequest,
    MapUrlResponse,
    SingleConversionResponse,
)
from .url_parser import parse_map_url

router = APIRouter()


@router.post("/convert", response_model=CoordinateConversionResponse)
async def convert_coordinates_api(
    request: CoordinateConversionRequest,
    current_user: User = Depends(get_current_active_user)
) -> CoordinateConversionResponse:
    """批量坐标转换并记录

    Args:
        request: 坐标列表、原始坐标系(from)、目标坐标系(to)

    Returns:
        CoordinateConversionResponse: 每个坐标的原值与转换值
    """
    return await services.convert_and_record(request, current_user)


@router.get("/convert", response_model=SingleConversionResponse)
async def convert_single_coordinate_api(
    lng: float = Query(..., ge=-180, le=180, description="经度"),
    lat: float = Query(..., ge=-90, le=90, description="纬度"),
    from_sys: Optional[str] = Query(None, alias="from", description="原始坐标系统，可选值：'WGS84', 'GCJ02', 'BD09'"),
    to_sys: Optional[str] = Query(None, alias="to", description="目标坐标系统，可选值：'WGS84', 'GCJ02', 'BD09'")
) -> SingleConversionResponse:
    """单点坐标转换 (GET方法)，不写入转换记录"""
    return services.convert_single(lng, lat, from_sys, to_sys)


@router.get("/history", response_model=HistoryPage[ConversionRecordOut])
async def conversion_history_api(
    page: Optional[str] = Query(None, description="页码，从1开始"),
    limit: Optional[str] = Query(None, description="每页条数"),
    current_user: User = Depends(get_current_active_user)
):
    """获取当前用户的转换历史，按时间倒序"""
    page, limit = validate_pagination(page, limit)
    rows, total = await get_conversion_history(current_user.id, page, limit)
    return {"history": rows, "total": total, "page": page, "limit": limit}


@router.post("/parse-map-url", response_model=MapUrlResponse)
async def parse_map_url_api(
    request: MapUrlRequest,
    current_user: User = Depends(get_current_active_user)
) -> MapUrlResponse:
    """解析百度、高德、腾讯地图分享链接中的坐标"""
    parsed = parse_map_url(request.url)
    return MapUrlResponse(
        coordinates=parsed.coordinate,
        system=parsed.datum.value,
        provider=parsed.provider,
    )


@router.get("/templates/gps")
async def download_gps_template_api():
    """获取GPS坐标模板Excel文件"""
    return services.download_gps_template()


@router.post("/convert-excel")
async def convert_excel_api(
    file: UploadFile = File(...),
    from_sys: str = Form("GCJ02", alias="from"),
    to_sys: str = Form("WGS84", alias="to"),
    current_user: User = Depends(get_current_active_user)
):
    """上传Excel批量转换经纬度列，返回追加了转换结果的Excel文件"""
    return await services.convert_coordinates_from_excel(file, from_sys, to_sys, current_user)
