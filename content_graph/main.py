import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from content_graph.cache import cache
from content_graph.config import settings
from content_graph.errors import (
    ConflictError,
    ContentGraphError,
    IntegrityError,
    NotFound,
    StorageError,
    ValidationError,
)
from content_graph.middleware import RequestLogMiddleware
from content_graph.routers import accounts, content_items, tags

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
_STATUS_BY_ERROR: tuple[tuple[type[ContentGraphError], int], ...] = (
    (ValidationError, 422),
    (IntegrityError, 422),
    (ConflictError, 409),
    (NotFound, 404),
    (StorageError, 503),
)


def status_for(exc: ContentGraphError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        await cache.connect()
    except Exception as exc:
        logger.warning("Cache unavailable, continuing without it: %s", exc)
    yield
    await cache.disconnect()


app = FastAPI(
    title="Content Graph API",
    description="Accounts, profiles, content items and tags over a relational entity graph",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(accounts.router)
app.include_router(content_items.router)
app.include_router(tags.router)


@app.exception_handler(ContentGraphError)
async def content_graph_error_handler(request: Request, exc: ContentGraphError):
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0", "cache": cache.stats}
