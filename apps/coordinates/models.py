from tortoise import fields, models


class ConversionRecord(models.Model):
    """坐标转换记录

    每次转换调用追加一条，创建后不再修改。
    """
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField('models.User', related_name='conversion_records', description="发起转换的用户")
    original_coordinates = fields.JSONField(description="原始坐标列表")
    converted_coordinates = fields.JSONField(description="转换后坐标列表")
    from_system = fields.CharField(max_length=10, description="原始坐标系")
    to_system = fields.CharField(max_length=10, description="目标坐标系")
    timestamp = fields.DatetimeField(auto_now_add=True, index=True, description="转换时间")
    notes = fields.TextField(null=True, description="备注")

    class Meta:
        table = "conversion_history"
        description = "坐标转换记录表"

    def __str__(self):
        return f"{self.from_system} -> {self.to_system} ({self.timestamp})"
