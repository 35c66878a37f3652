# orderdesk/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from orderdesk.core.config import get_settings
from orderdesk.core.auth import identity_from_request
from orderdesk.core.errors import InvalidArgumentError, OrderDeskError, UnauthorizedError
from orderdesk.core.results import as_response, failure
from orderdesk.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from orderdesk.models import user as _user_models  # noqa: F401
from orderdesk.models import product as _product_models  # noqa: F401
from orderdesk.models import order as _order_models  # noqa: F401
from orderdesk.models import activity_log as _activity_log_models  # noqa: F401

# Routers
from orderdesk.routers.orders import router as orders_router
from orderdesk.routers.products import router as products_router
from orderdesk.routers.users import router as users_router
from orderdesk.routers.logs import router as logs_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderDeskError)
async def orderdesk_error_handler(request: Request, exc: OrderDeskError) -> JSONResponse:
    """Domain errors raised by read endpoints -> result envelope."""
    return as_response(failure(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed bodies/queries get the same envelope as other invalid input.

    Anonymous callers are told Unauthorized first, as every operation does.
    """
    if await identity_from_request(request) is None:
        return as_response(failure(UnauthorizedError()))
    logger.info("Request validation failed on %s: %s", request.url.path, exc.errors())
    return as_response(failure(InvalidArgumentError("Invalid request.")))


# Versioned API prefix, e.g. /api/v1
app.include_router(orders_router, prefix=settings.API_V1_STR)
app.include_router(products_router, prefix=settings.API_V1_STR)
app.include_router(users_router, prefix=settings.API_V1_STR)
app.include_router(logs_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "orderdesk"}
