from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from core.settings import settings

def setup_cors_middleware(app):
    """配置 CORS 中间件，未配置来源时不启用"""
    origins = [str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS]
    if not origins:
        return app
    logger.info(f"启用 CORS，允许来源: {', '.join(origins)}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Authorization", "Content-Type"],
    )
    return app
