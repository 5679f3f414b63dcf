import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from orgtree_api import __version__
from orgtree_api.config import settings
from orgtree_api.db import engine
from orgtree_api.exceptions import HierarchyError, UnexpectedError
from orgtree_api.models import Base
from orgtree_api.routes import hierarchy_router, organizations_router

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables on startup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield


app = FastAPI(
    title="Orgtree API",
    description="API for managing hierarchies of tenant organizations",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error rendering: every error body is {"error": message} ---


@app.exception_handler(HierarchyError)
async def hierarchy_error_handler(request: Request, exc: HierarchyError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first["loc"] if part != "body")
        message = f"{location}: {first['msg']}" if location else first["msg"]
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(
        "Unexpected storage error on %s %s", request.method, request.url.path
    )
    error = UnexpectedError()
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


app.include_router(organizations_router, prefix="/api/v1")
app.include_router(hierarchy_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
