from enum import Enum
from tortoise import fields, models


class BatteryStatus(str, Enum):
    """电池状态枚举"""
    CHARGING = "charging"
    DISCHARGING = "discharging"
    NOT_CHARGING = "not_charging"
    FULL = "full"
    UNKNOWN = "unknown"


class Device(models.Model):
    """搜救队员设备状态

    每个用户一行，每次上报直接覆盖，不保留历史。
    """
    id = fields.IntField(pk=True)
    user = fields.OneToOneField('models.User', related_name='device', description="所属用户")
    device_model = fields.CharField(max_length=100, null=True, description="设备型号")
    battery_level = fields.IntField(null=True, description="电量百分比 0-100")
    battery_status = fields.CharEnumField(BatteryStatus, default=BatteryStatus.UNKNOWN, description="电池状态")
    last_seen = fields.DatetimeField(null=True, description="最后上报时间")

    class Meta:
        table = "devices"
        description = "设备状态表"

    def __str__(self):
        return f"{self.device_model or 'device'} ({self.battery_level}%)"


class LocationHistory(models.Model):
    """位置轨迹

    只追加，不修改也不删除。经纬度按收到的值保存，不做范围校验。
    """
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField('models.User', related_name='locations', description="所属用户")
    latitude = fields.FloatField(description="纬度")
    longitude = fields.FloatField(description="经度")
    altitude = fields.FloatField(null=True, description="海拔高度(米)")
    accuracy = fields.FloatField(null=True, description="定位精度(米)")
    timestamp = fields.DatetimeField(index=True, description="定位时间")

    class Meta:
        table = "location_history"
        description = "位置轨迹表"

    def __str__(self):
        return f"{self.user_id} ({self.latitude}, {self.longitude}) @ {self.timestamp}"
