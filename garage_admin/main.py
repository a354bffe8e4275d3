"""
Main FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from garage_admin.config import get_settings
from garage_admin.database import init_db
from garage_admin.exceptions import (
    DuplicateRecordError,
    GarageAdminError,
    InvalidQueryError,
    PermissionDeniedError,
    QueryTimeoutError,
    RecordNotFoundError,
    StoreError,
    WorkOrderValidationError,
)
from garage_admin.logging_config import configure_logging
from garage_admin.routers import customers, reports, services, users, vehicles

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan events for the application.
    Handles startup and shutdown events.
    """
    configure_logging(settings.log_level)
    logger.info("Starting %s %s", settings.app_name, settings.app_version)
    await init_db()
    logger.info("Database initialized, API available at %s", settings.api_v1_prefix)

    yield

    logger.info("Shutting down %s", settings.app_name)


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    ## Garage Admin API

    Customer and vehicle records, service work orders, role-based permissions
    and revenue reporting for an auto-repair garage.

    ### Roles:
    * **admin**: everything, including financials and user management
    * **mechanic** / **secretary**: view dashboard, customers and services
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    RecordNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateRecordError: status.HTTP_400_BAD_REQUEST,
    WorkOrderValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidQueryError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    QueryTimeoutError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@app.exception_handler(GarageAdminError)
async def garage_admin_error_handler(request: Request, exc: GarageAdminError):
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if exc.retryable:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "retryable": exc.retryable},
    )


# Include routers
app.include_router(users.router, prefix=settings.api_v1_prefix)
app.include_router(customers.router, prefix=settings.api_v1_prefix)
app.include_router(vehicles.router, prefix=settings.api_v1_prefix)
app.include_router(services.router, prefix=settings.api_v1_prefix)
app.include_router(reports.router, prefix=settings.api_v1_prefix)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to Garage Admin API",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "garage_admin.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
