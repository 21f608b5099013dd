"""
Application factory: FastAPI HTTP surface plus the socket.io relay
"""

from contextlib import asynccontextmanager
from typing import Optional

import socketio
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .constants import CORS_ALLOW_METHODS, ERROR_MESSAGES
from .message_buffer import MessageBuffer
from .persistence import DurableWriter
from .relay import SignalingRelay
from .routes import groups_router, health_router, users_router
from .sockets import SocketIOTransport, create_socket_server, register_handlers
from .storage import ChatStore, MemoryStore, RedisStore
from .logger import get_logger, log_security_event, log_system_event, set_log_level

logger = get_logger()


def build_store(settings: Settings) -> ChatStore:
    if settings.STORE_BACKEND == "redis":
        return RedisStore(settings.REDIS_URL)
    return MemoryStore()


def create_app(settings: Optional[Settings] = None, store: Optional[ChatStore] = None) -> FastAPI:
    """
    Build the FastAPI application with its relay, store and socket server

    The socket.io server is available as ``app.state.sio``; wrap the app
    with ``create_asgi_app`` to serve both.
    """
    settings = settings or get_settings()
    set_log_level(settings.LOG_LEVEL)
    store = store or build_store(settings)

    sio = create_socket_server(settings.ALLOWED_ORIGINS)
    relay = SignalingRelay(
        SocketIOTransport(sio),
        buffer=MessageBuffer(history_limit=settings.HISTORY_LIMIT),
        store=store,
        writer=DurableWriter(
            timeout=settings.STORE_TIMEOUT_SECONDS,
            retries=settings.STORE_RETRIES,
            max_pending=settings.STORE_QUEUE_SIZE,
        ),
    )
    register_handlers(sio, relay)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_system_event("startup", f"store={settings.STORE_BACKEND} | origins={settings.ALLOWED_ORIGINS}")
        relay.writer.start()

        yield

        await relay.close()
        log_system_event("shutdown", "durable writes drained, store closed")

    app = FastAPI(
        title="Call Signaling Relay",
        description="Room presence, WebRTC signal forwarding and ephemeral chat",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.relay = relay
    app.state.sio = sio

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(groups_router)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content={"error": "Invalid request body"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}")
        log_security_event("unhandled_exception", {
            "path": str(request.url.path),
            "error": str(exc),
        })
        status_code = getattr(exc, "status_code", 500)
        if not isinstance(status_code, int):
            status_code = 500
        return JSONResponse(
            status_code=status_code,
            content={"error": str(exc) or ERROR_MESSAGES["internal"]},
        )

    return app


def create_asgi_app(settings: Optional[Settings] = None, store: Optional[ChatStore] = None) -> socketio.ASGIApp:
    """Serve socket.io under /socket.io/ and everything else through FastAPI"""
    app = create_app(settings=settings, store=store)
    return socketio.ASGIApp(app.state.sio, other_asgi_app=app)
