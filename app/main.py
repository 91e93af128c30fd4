import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi_limiter import FastAPILimiter
from redis.asyncio import Redis

from app.config import settings
from app.core.handlers import register_exception_handlers
from app.core.logging import setup_logging
from app.core.revocation import build_revocation_store
from app.database import init_models
from app.routers import agents, auth, health, messages, properties, users

app = FastAPI(title="Real Estate Listings API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.revocation_store = build_revocation_store()
register_exception_handlers(app)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(agents.router)
app.include_router(properties.router)
app.include_router(messages.router)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
    return await call_next(request)


@app.on_event("startup")
async def startup_event():
    setup_logging()
    if settings.AUTO_CREATE_TABLES:
        await init_models()
    if settings.RATE_LIMIT_ENABLED:
        redis = await Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        await FastAPILimiter.init(redis)
