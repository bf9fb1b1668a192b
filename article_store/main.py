import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from article_store.config import settings
from article_store.errors import ArticleStoreError
from article_store.middleware import TimingMiddleware
from article_store.routers import articles, metrics
from article_store.sessions import sessions

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await sessions.connect()
    yield
    # Shutdown
    await sessions.disconnect()

app = FastAPI(
    title="Article Store",
    description="Paged article storage with rendered/raw variants and soft deletion",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ArticleStoreError)
async def handle_store_error(request: Request, exc: ArticleStoreError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": False, "error": exc.detail},
    )


# Routers
app.include_router(articles.router)
app.include_router(metrics.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
