from typing import Optional
from fastapi import UploadFile
from fastapi.responses import StreamingResponse
import io
from datetime import datetime
import pandas as pd
from loguru import logger

from core.exceptions import CustomException, StorageError
from core.settings import settings
from apps.users.models import User
from .datum import Datum, convert, convert_point
from .schemas import Coordinate, ConversionResult, CoordinateConversionRequest, CoordinateConversionResponse
from .crud import create_conversion_record

EXCEL_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
LNG_COLUMN = "经度"
LAT_COLUMN = "纬度"
CONVERTED_LNG_COLUMN = "转换后经度"
CONVERTED_LAT_COLUMN = "转换后纬度"


async def convert_and_record(request: CoordinateConversionRequest, user: User) -> CoordinateConversionResponse:
    """转换坐标并写入转换记录

    先计算后记录。记录失败只写日志，计算结果照常返回，recorded 置为 False。
    """
    from_datum = Datum.parse(request.from_sys)
    to_datum = Datum.parse(request.to_sys)
    results = convert(request.coordinates, from_datum, to_datum)

    recorded = True
    try:
        await create_conversion_record(user.id, results, from_datum.value, to_datum.value, request.notes)
    except StorageError:
        logger.warning(f"转换记录未保存，仍返回计算结果: user={user.id}, {from_datum.value}->{to_datum.value}")
        recorded = False

    return CoordinateConversionResponse(results=results, recorded=recorded)


def download_gps_template() -> StreamingResponse:
    """获取GPS坐标模板Excel文件，包含序号、名称、经度和纬度四列

    Returns:
        StreamingResponse: Excel文件响应
    """
    df = pd.DataFrame({
        '序号': [1, 2, 3],
        '名称': ['北京天安门', '集结点', ''],
        LNG_COLUMN: [116.3912, 116.4074, ''],
        LAT_COLUMN: [39.9076, 39.9042, '']
    })

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        df.to_excel(writer, index=False)
    output.seek(0)

    return StreamingResponse(
        output,
        media_type=EXCEL_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=gps_template.xlsx"}
    )


def convert_dataframe(df: pd.DataFrame, from_datum: Datum, to_datum: Datum) -> pd.DataFrame:
    """逐行转换经纬度列，无法读取的行保留空值"""
    result_df = df.copy()
    result_df[CONVERTED_LNG_COLUMN] = None
    result_df[CONVERTED_LAT_COLUMN] = None

    for index, row in df.iterrows():
        try:
            lng = float(row[LNG_COLUMN])
            lat = float(row[LAT_COLUMN])
        except (ValueError, TypeError):
            continue
        if pd.isna(lng) or pd.isna(lat):
            continue

        new_lng, new_lat = convert_point(lng, lat, from_datum, to_datum)
        result_df.at[index, CONVERTED_LNG_COLUMN] = new_lng
        result_df.at[index, CONVERTED_LAT_COLUMN] = new_lat

    return result_df


async def convert_coordinates_from_excel(
    file: UploadFile,
    from_sys: str,
    to_sys: str,
    user: Optional[User] = None
) -> StreamingResponse:
    """识别上传的Excel文件，根据经度和纬度实现转换，并返回转换后的excel文件

    Args:
        file: 上传的Excel文件
        from_sys: 原始坐标系统
        to_sys: 目标坐标系统
        user: 当前用户，存在时写入转换记录

    Returns:
        StreamingResponse: Excel文件响应
    """
    from_datum = Datum.parse(from_sys)
    to_datum = Datum.parse(to_sys)

    if not (file.filename or "").endswith(".xlsx"):
        raise CustomException("仅支持 Excel 文件 (.xlsx)")

    content = await file.read()
    if len(content) > settings.CONVERTERS_HANDLE_MAX_EXCEL_SIZE:
        raise CustomException(f"文件大小超过限制，最大允许{settings.CONVERTERS_HANDLE_MAX_EXCEL_SIZE / (1024 * 1024):.0f}MB")

    try:
        df = pd.read_excel(io.BytesIO(content), engine="openpyxl")
    except (ValueError, OSError) as e:
        logger.warning(f"Excel 文件读取失败: {file.filename}, {str(e)}")
        raise CustomException("无法读取 Excel 文件")

    missing_columns = [col for col in (LNG_COLUMN, LAT_COLUMN) if col not in df.columns]
    if missing_columns:
        raise CustomException(f"Excel文件缺少必要的列: {', '.join(missing_columns)}")

    result_df = convert_dataframe(df, from_datum, to_datum)

    if user is not None:
        converted_rows = result_df.dropna(subset=[CONVERTED_LNG_COLUMN, CONVERTED_LAT_COLUMN])
        results = [
            ConversionResult(
                original=Coordinate(lng=float(r[LNG_COLUMN]), lat=float(r[LAT_COLUMN])),
                converted=Coordinate(lng=float(r[CONVERTED_LNG_COLUMN]), lat=float(r[CONVERTED_LAT_COLUMN])),
            )
            for _, r in converted_rows.iterrows()
        ]
        try:
            await create_conversion_record(user.id, results, from_datum.value, to_datum.value, f"Excel: {file.filename}")
        except StorageError:
            logger.warning(f"Excel 转换记录未保存: user={user.id}, file={file.filename}")

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        result_df.to_excel(writer, index=False)
    output.seek(0)

    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    result_filename = f"coordinate_convert_{timestamp}.xlsx"

    return StreamingResponse(
        output,
        media_type=EXCEL_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={result_filename}"}
    )


def convert_single(lng: float, lat: float, from_sys: str, to_sys: str) -> dict:
    """单点转换，不写入记录"""
    from_datum = Datum.parse(from_sys)
    to_datum = Datum.parse(to_sys)
    new_lng, new_lat = convert_point(lng, lat, from_datum, to_datum)
    return {
        "lng": new_lng,
        "lat": new_lat,
        "from_sys": from_datum.value,
        "to_sys": to_datum.value
    }
