import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.cache import cache
from app.config import settings
from app.exception_handlers import register_exception_handlers
from app.middleware import RequestTimingMiddleware
from app.routers import articles, auth

API_VERSION = "1.0.0"

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; the API works without Redis, CacheManager degrades to no-op.
    await cache.connect()
    logger.info("Article API started (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    await cache.disconnect()


app = FastAPI(
    title="Article API",
    description="Users sign up and sign in; authors create, edit, delete and list articles.",
    version=API_VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routers
app.include_router(auth.router)
app.include_router(articles.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": API_VERSION}
