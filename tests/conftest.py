"""测试公共夹具

每个测试使用临时目录下独立的 SQLite 数据库。
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from tortoise import Tortoise

from core.database_config import MODEL_MODULES
from core.security import create_access_token
from apps.users.models import User


class FakeConnection:
    """模拟 WebSocket 连接，记录收到的消息"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(data)


@pytest_asyncio.fixture
async def db(tmp_path):
    await Tortoise.init(
        db_url=f"sqlite://{tmp_path / 'test.db'}",
        modules={"models": MODEL_MODULES}
    )
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def user(db):
    return await User.create(username="operator", email="operator@example.com", role="user")


@pytest_asyncio.fixture
async def rescuer(db):
    return await User.create(username="rescuer-01", email="r01@example.com", role="rescuer")


@pytest.fixture
def auth_headers(user):
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(db):
    from main import app
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
