from dotenv import load_dotenv

# 加载.env文件，默认在当前目录下查找.env文件
load_dotenv()

from fastapi import FastAPI
from contextlib import asynccontextmanager
from core.settings import settings
from core.database import init_db, close_db
from core.database_config import check_db_health
from core.logging import setup_logging
from core.middleware import setup_cors_middleware, setup_exception_handlers
from api.v1.api import api_router
from apps.live.hub import hub

# 初始化日志系统
logger = setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # 启动事件
    await init_db()
    await hub.start()

    yield

    # 关闭事件
    await hub.stop()
    await close_db()

app = FastAPI(
    title=settings.PROJECT_NAME,
    lifespan=lifespan
)

# 配置中间件
app = setup_cors_middleware(app)
app = setup_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}

@app.get("/health")
async def health_check():
    db_health = await check_db_health()
    return {
        "status": "healthy" if db_health else "unhealthy",
        "version": "1.0.0",
        "database": "connected" if db_health else "disconnected",
        "live_connections": len(hub.active_connections)
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_excludes=["logs/*", ".git/*", "data/*"]
    )
