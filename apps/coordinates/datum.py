"""坐标系统转换工具

提供WGS84、GCJ02和BD09三种坐标系统之间的相互转换功能。

WGS84：GPS坐标系，国际通用坐标系
GCJ02：国测局坐标系，火星坐标系，中国国内使用的经过加密的坐标系
BD09：百度坐标系，在GCJ02基础上再次加密

GCJ02 和 BD09 的偏移是非线性的经验拟合结果，不能用通用投影库直接换算，
这里按公开的算法逐对实现。所有函数都是纯函数，可并发调用。
"""

import math
from enum import Enum
from typing import Callable, Dict, List, Sequence, Tuple

from core.exceptions import UnsupportedDatumError
from .schemas import Coordinate, ConversionResult

# 克拉索夫斯基椭球长半轴
EARTH_RADIUS = 6378245.0
# 偏心率平方
EE = 0.00669342162296594323
# BD09 使用的角度常量
X_PI = math.pi * 3000.0 / 180.0

# GCJ02 反算迭代参数
INVERSE_THRESHOLD = 1e-9
INVERSE_MAX_ITERATIONS = 30


class Datum(str, Enum):
    """坐标系统枚举"""
    WGS84 = "WGS84"
    GCJ02 = "GCJ02"
    BD09 = "BD09"

    @classmethod
    def parse(cls, value) -> "Datum":
        """解析坐标系标识，大小写不敏感

        Raises:
            UnsupportedDatumError: 不是支持的三种坐标系之一
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise UnsupportedDatumError(value)


def _transform_lat(x: float, y: float) -> float:
    """GCJ02坐标转换算法中纬度转换"""
    ret = -100.0 + 2.0 * x + 3.0 * y + 0.2 * y * y + 0.1 * x * y + 0.2 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(y * math.pi) + 40.0 * math.sin(y / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (160.0 * math.sin(y / 12.0 * math.pi) + 320 * math.sin(y * math.pi / 30.0)) * 2.0 / 3.0
    return ret

def _transform_lng(x: float, y: float) -> float:
    """GCJ02坐标转换算法中经度转换"""
    ret = 300.0 + x + 2.0 * y + 0.1 * x * x + 0.1 * x * y + 0.1 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(x * math.pi) + 40.0 * math.sin(x / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (150.0 * math.sin(x / 12.0 * math.pi) + 300.0 * math.sin(x / 30.0 * math.pi)) * 2.0 / 3.0
    return ret

def out_of_china(lng: float, lat: float) -> bool:
    """判断坐标是否在中国境外，境外坐标不做偏移"""
    return not (73.66 < lng < 135.05 and 3.86 < lat < 53.55)

def wgs84_to_gcj02(lng: float, lat: float) -> Tuple[float, float]:
    """WGS84坐标系转GCJ02坐标系

    Args:
        lng: WGS84坐标系下的经度
        lat: WGS84坐标系下的纬度

    Returns:
        Tuple[float, float]: GCJ02坐标系下的经度和纬度
    """
    if out_of_china(lng, lat):
        return lng, lat

    d_lat = _transform_lat(lng - 105.0, lat - 35.0)
    d_lng = _transform_lng(lng - 105.0, lat - 35.0)

    rad_lat = lat / 180.0 * math.pi
    magic = math.sin(rad_lat)
    magic = 1 - EE * magic * magic
    sqrt_magic = math.sqrt(magic)

    d_lat = (d_lat * 180.0) / ((EARTH_RADIUS * (1 - EE)) / (magic * sqrt_magic) * math.pi)
    d_lng = (d_lng * 180.0) / (EARTH_RADIUS / sqrt_magic * math.cos(rad_lat) * math.pi)

    return lng + d_lng, lat + d_lat

def gcj02_to_wgs84(lng: float, lat: float) -> Tuple[float, float]:
    """GCJ02坐标系转WGS84坐标系

    GCJ02 没有解析逆，先用一步近似，再反复用正算结果修正，
    直到正算误差小于 INVERSE_THRESHOLD 度。

    Args:
        lng: GCJ02坐标系下的经度
        lat: GCJ02坐标系下的纬度

    Returns:
        Tuple[float, float]: WGS84坐标系下的经度和纬度
    """
    if out_of_china(lng, lat):
        return lng, lat

    wgs_lng, wgs_lat = lng, lat
    for _ in range(INVERSE_MAX_ITERATIONS):
        gcj_lng, gcj_lat = wgs84_to_gcj02(wgs_lng, wgs_lat)
        d_lng = gcj_lng - lng
        d_lat = gcj_lat - lat
        if abs(d_lng) < INVERSE_THRESHOLD and abs(d_lat) < INVERSE_THRESHOLD:
            break
        wgs_lng -= d_lng
        wgs_lat -= d_lat

    return wgs_lng, wgs_lat

def gcj02_to_bd09(lng: float, lat: float) -> Tuple[float, float]:
    """GCJ02坐标系转BD09坐标系"""
    z = math.sqrt(lng * lng + lat * lat) + 0.00002 * math.sin(lat * X_PI)
    theta = math.atan2(lat, lng) + 0.000003 * math.cos(lng * X_PI)

    return z * math.cos(theta) + 0.0065, z * math.sin(theta) + 0.006

def bd09_to_gcj02(lng: float, lat: float) -> Tuple[float, float]:
    """BD09坐标系转GCJ02坐标系"""
    x = lng - 0.0065
    y = lat - 0.006

    z = math.sqrt(x * x + y * y) - 0.00002 * math.sin(y * X_PI)
    theta = math.atan2(y, x) - 0.000003 * math.cos(x * X_PI)

    return z * math.cos(theta), z * math.sin(theta)

def wgs84_to_bd09(lng: float, lat: float) -> Tuple[float, float]:
    """WGS84坐标系转BD09坐标系，经由GCJ02"""
    return gcj02_to_bd09(*wgs84_to_gcj02(lng, lat))

def bd09_to_wgs84(lng: float, lat: float) -> Tuple[float, float]:
    """BD09坐标系转WGS84坐标系，经由GCJ02"""
    return gcj02_to_wgs84(*bd09_to_gcj02(lng, lat))


# (源坐标系, 目标坐标系) -> 转换函数
TRANSFORMS: Dict[Tuple[Datum, Datum], Callable[[float, float], Tuple[float, float]]] = {
    (Datum.WGS84, Datum.GCJ02): wgs84_to_gcj02,
    (Datum.WGS84, Datum.BD09): wgs84_to_bd09,
    (Datum.GCJ02, Datum.WGS84): gcj02_to_wgs84,
    (Datum.GCJ02, Datum.BD09): gcj02_to_bd09,
    (Datum.BD09, Datum.WGS84): bd09_to_wgs84,
    (Datum.BD09, Datum.GCJ02): bd09_to_gcj02,
}


def convert_point(lng: float, lat: float, from_sys, to_sys) -> Tuple[float, float]:
    """转换单个经纬度

    Args:
        lng: 原始经度
        lat: 原始纬度
        from_sys: 原始坐标系统
        to_sys: 目标坐标系统

    Returns:
        Tuple[float, float]: 转换后的经度和纬度

    Raises:
        UnsupportedDatumError: 坐标系不受支持
    """
    from_datum = Datum.parse(from_sys)
    to_datum = Datum.parse(to_sys)

    # 源坐标系和目标坐标系相同，原样返回
    if from_datum == to_datum:
        return lng, lat

    return TRANSFORMS[(from_datum, to_datum)](lng, lat)


def convert(coordinates: Sequence[Coordinate], from_sys, to_sys) -> List[ConversionResult]:
    """批量坐标转换

    海拔和精度原样保留，只替换经纬度。

    Raises:
        UnsupportedDatumError: 坐标系不受支持，即使坐标列表为空也会校验
    """
    from_datum = Datum.parse(from_sys)
    to_datum = Datum.parse(to_sys)

    results = []
    for coord in coordinates:
        original = Coordinate.model_validate(coord.model_dump())
        if from_datum == to_datum:
            converted = original.model_copy()
        else:
            lng, lat = TRANSFORMS[(from_datum, to_datum)](original.lng, original.lat)
            converted = original.model_copy(update={"lng": lng, "lat": lat})
        results.append(ConversionResult(original=original, converted=converted))
    return results
