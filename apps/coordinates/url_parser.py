"""地图分享链接解析

按服务商表依次匹配链接的主机名，命中后用该服务商的坐标模式提取
经纬度（先经度后纬度），坐标系由服务商决定。新增服务商只需在
MAP_PROVIDERS 中追加一项。
"""

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple
from urllib.parse import urlparse, unquote

from core.exceptions import UnparsableUrlError
from .datum import Datum
from .schemas import Coordinate

_NUMBER = r"(-?\d+(?:\.\d*)?)"


@dataclass(frozen=True)
class MapProvider:
    name: str
    host: str
    pattern: Pattern
    datum: Datum


@dataclass(frozen=True)
class ParsedMapUrl:
    coordinate: Coordinate
    datum: Datum
    provider: str


MAP_PROVIDERS: Tuple[MapProvider, ...] = (
    # 百度地图: https://map.baidu.com/@116.404,39.915,17z
    MapProvider("baidu", "map.baidu.com", re.compile(r"@" + _NUMBER + r"," + _NUMBER), Datum.BD09),
    # 高德地图: https://uri.amap.com/marker?location=116.397,39.909
    MapProvider("amap", "amap.com", re.compile(r"location=" + _NUMBER + r"," + _NUMBER), Datum.GCJ02),
    # 腾讯地图: https://map.qq.com/?center=116.397,39.909
    MapProvider("tencent", "map.qq.com", re.compile(r"center=" + _NUMBER + r"," + _NUMBER), Datum.GCJ02),
)


def _hostname(url: str) -> str:
    if "://" not in url:
        url = "https://" + url
    return (urlparse(url).hostname or "").lower()


def match_provider(url: str) -> Optional[MapProvider]:
    """返回第一个主机名匹配的服务商，没有匹配返回None"""
    host = _hostname(url)
    for provider in MAP_PROVIDERS:
        if provider.host in host:
            return provider
    return None


def parse_map_url(url: str) -> ParsedMapUrl:
    """解析地图分享链接

    Raises:
        UnparsableUrlError: 服务商不受支持或链接中没有坐标
    """
    url = unquote(url.strip())
    provider = match_provider(url)
    if provider is None:
        raise UnparsableUrlError("不支持的地图服务")

    match = provider.pattern.search(url)
    if match is None:
        raise UnparsableUrlError()

    lng, lat = float(match.group(1)), float(match.group(2))
    return ParsedMapUrl(
        coordinate=Coordinate(lng=lng, lat=lat),
        datum=provider.datum,
        provider=provider.name,
    )
