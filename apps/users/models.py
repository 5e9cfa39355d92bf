from tortoise import fields, models

class User(models.Model):
    """身份用户

    注册与登录由外部身份服务负责，这里只保留定位业务需要的字段。
    """
    id = fields.IntField(pk=True)
    username = fields.CharField(max_length=50, unique=True)
    email = fields.CharField(max_length=255, unique=True, null=True)
    is_active = fields.BooleanField(default=True)
    role = fields.CharField(max_length=20, default="user", description="角色，搜救队员为 rescuer")
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "users"

    def __str__(self):
        return f"{self.username}"
