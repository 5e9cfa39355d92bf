from fastapi import HTTPException, status

class CustomException(HTTPException):
    def __init__(self, detail: str, status_code: int = status.HTTP_400_BAD_REQUEST, headers: dict = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)

class AuthenticationError(CustomException):
    def __init__(self, detail: str = "认证失败"):
        super().__init__(detail=detail, status_code=status.HTTP_401_UNAUTHORIZED, headers={"WWW-Authenticate": "Bearer"})

class NotFoundError(CustomException):
    def __init__(self, detail: str = "资源不存在"):
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)

class UnsupportedDatumError(CustomException):
    def __init__(self, datum=None):
        self.datum = datum
        if datum is None:
            super().__init__(detail="缺少坐标系参数")
        else:
            super().__init__(detail=f"不支持的坐标系: {datum}")

class UnparsableUrlError(CustomException):
    def __init__(self, detail: str = "无法解析地图链接"):
        super().__init__(detail=detail)

class InvalidPaginationError(CustomException):
    def __init__(self, detail: str = "分页参数必须为正整数"):
        super().__init__(detail=detail)

class StorageError(CustomException):
    """存储层不可用或写入被拒绝，对调用方只暴露通用信息"""
    def __init__(self, detail: str = "数据存储失败"):
        super().__init__(detail=detail, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
