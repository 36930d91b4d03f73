"""
Main FastAPI application.
- Preflight database test at startup
- Service errors mapped to JSON responses in one place
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sweetshop.config import Settings, settings
from sweetshop.database import get_db, init_db, test_connection
from sweetshop.exceptions import AuthenticationError, SweetShopError
from sweetshop.routers import auth_router, sweets_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = Settings.model_fields["SECRET_KEY"].default


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}")

    if settings.SECRET_KEY == DEFAULT_SECRET_KEY:
        logger.warning("SECRET_KEY is the development default; set it in the environment")

    logger.info("Running preflight database test...")
    success, message = test_connection()
    if not success:
        logger.error(f"Preflight test failed: {message}")
    else:
        logger.info(f"Preflight test passed: {message}")

    try:
        init_db()
        logger.info("Database tables verified")
    except SQLAlchemyError as e:
        logger.error(f"Database table creation failed: {e}")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")


app = FastAPI(
    title=settings.APP_NAME,
    description="Sweet shop inventory: accounts, catalogue, purchases and restocking",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SweetShopError)
async def sweetshop_error_handler(request: Request, exc: SweetShopError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Rejected input is not echoed back; it may not even be JSON-serializable (inf, nan)
    errors = jsonable_encoder(
        [{k: v for k, v in error.items() if k != "input"} for error in exc.errors()]
    )
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "details": errors},
    )


app.include_router(auth_router, prefix="/api")
app.include_router(sweets_router, prefix="/api")


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """System health check; reports database status instead of failing"""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        db_status = f"error: {e}"
        logger.warning(f"Health check database error: {e}")

    return {
        "status": "healthy",
        "service": "sweetshop",
        "database": db_status,
        "version": settings.APP_VERSION,
    }


@app.get("/")
def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "endpoints": {
            "docs": "/api/docs",
            "health": "/health",
            "auth": "/api/auth/login",
            "sweets": "/api/sweets",
        },
    }
