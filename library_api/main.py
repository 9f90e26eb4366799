"""
library_api/main.py

Library API (FastAPI): authors and the books they wrote.

Endpoints:
- POST   /api/authorcollections                    -> bulk-create authors
- GET    /api/authorcollections/{ids}              -> fetch several authors at once
- GET    /api/authors/{author_id}/books            -> books of an author, with links
- POST   /api/authors/{author_id}/books            -> add a book
- GET/PUT/PATCH/DELETE /api/authors/{author_id}/books/{book_id}
- GET    /health                                   -> healthcheck with DB round-trip
- GET    /metrics                                  -> Prometheus metrics
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .database import Base, engine
from .errors import register_exception_handlers
from .routers import author_collections, books, values
from . import models  # noqa: F401  registers the tables on Base.metadata

logger = logging.getLogger("library_api")
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Tables verified/created.")
    except SQLAlchemyError as e:
        # Another worker may be creating the same tables concurrently
        logger.warning("Table creation reported an error, tables may already exist: %s", e)
    yield


app = FastAPI(
    title="Library API",
    description="Authors and their books, with hypermedia links on book resources",
    version="1.0.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"]
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"]
)


def _path_template(request: Request) -> str:
    """
    Rebuilds the route template from the matched path parameters, e.g.
    /api/authors/{author_id}/books, so per-id paths share one series.
    """
    params = {str(value): name for name, value in request.path_params.items()}
    segments = request.url.path.split("/")
    return "/".join("{" + params[s] + "}" if s in params else s for s in segments)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id", str(uuid4()))
    start = time.time()

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.exception(
            "request_id=%s method=%s path=%s error=%s",
            request_id, request.method, request.url.path, str(exc)
        )
        raise

    duration_ms = int((time.time() - start) * 1000)
    logger.info(
        "request_id=%s method=%s path=%s status=%s duration_ms=%s",
        request_id, request.method, request.url.path, response.status_code, duration_ms
    )
    path = _path_template(request)
    REQUEST_COUNT.labels(request.method, path, str(response.status_code)).inc()
    REQUEST_LATENCY.labels(request.method, path).observe((time.time() - start))

    response.headers["X-Request-Id"] = request_id
    return response


@app.get("/metrics", include_in_schema=False)
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(author_collections.router, prefix="/api/authorcollections", tags=["Author collections"])
app.include_router(books.router, prefix="/api/authors/{author_id}/books", tags=["Books"])
app.include_router(values.router, prefix="/api/values", tags=["Values"])


# ---------------------------------------------------------------------
# Utility / basic observability
# ---------------------------------------------------------------------

@app.get("/")
def read_root():
    return {
        "service": "Library API",
        "status": "Online",
        "message": "Authors and books catalog",
    }


@app.get("/health")
def health_check():
    """
    Simple healthcheck:
    - healthy when a trivial query round-trips to the database.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "error": str(e)}
