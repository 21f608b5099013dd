"""
Call signaling relay server
Socket.IO presence/signaling/chat relay with a small FastAPI HTTP surface
"""

import uvicorn

from callrelay import create_asgi_app, get_logger, get_settings

settings = get_settings()
logger = get_logger()

app = create_asgi_app(settings=settings)

if __name__ == "__main__":
    logger.info(f"Starting call signaling relay on {settings.HOST}:{settings.PORT}")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
        ws_ping_interval=20,
        ws_ping_timeout=10,
    )
