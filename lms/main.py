"""
Main FastAPI application
Quiz delivery, grading and analytics service for the learning platform
"""
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging
import time

from lms.config import settings
from lms.database import SessionLocal, engine, init_db
from lms.api import admin, analytics, features, notifications, quizzes, results
from lms.exceptions import LMSError
from lms.services.feature_service import feature_gate
from lms.utils.cache import analytics_cache
from lms.utils.rate_limiter import rate_limiter

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Quizzes with automated and AI-assisted grading, results, notifications and analytics",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


UNLIMITED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


# Rate limiting middleware
@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Per-user (or per-IP) request budget"""

    if request.url.path in UNLIMITED_PATHS:
        return await call_next(request)

    try:
        await rate_limiter.check_rate_limit(request)
    except HTTPException as e:
        return JSONResponse(
            status_code=e.status_code,
            content=e.detail
        )

    return await call_next(request)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its caller and timing"""

    start_time = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start_time

    caller = request.headers.get("X-User-Id", "anonymous")
    logger.info(
        f"{request.method} {request.url.path} user={caller} "
        f"status={response.status_code} duration={duration:.3f}s"
    )

    return response


# Domain exception handler
@app.exception_handler(LMSError)
async def lms_exception_handler(request: Request, exc: LMSError):
    """Render service-layer errors with the standard envelope"""

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            "status_code": exc.status_code
        }
    )


# HTTP exception handler
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Format HTTP exceptions consistently"""

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "http_error",
            "message": exc.detail,
            "status_code": exc.status_code
        }
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors gracefully"""

    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "detail": str(exc) if settings.DEBUG else None
        }
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring

    Reports "degraded" when the database cannot be reached. The analytics
    cache is optional and only reported.
    """
    database_ok = True
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database query failed: {str(e)}")
        database_ok = False
    finally:
        db.close()

    return {
        "status": "healthy" if database_ok else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": database_ok,
        "analytics_cache": analytics_cache.enabled,
        "timestamp": time.time()
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "LMS Quiz API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "routers": sorted(router.prefix for router in ROUTERS)
    }


# Include routers
ROUTERS = [
    quizzes.router,
    results.router,
    notifications.router,
    features.router,
    analytics.router,
    admin.router,
]
for router in ROUTERS:
    app.include_router(router)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database and default feature controls on startup"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        init_db()
        db = SessionLocal()
        try:
            feature_gate.initialize_features(db)
        finally:
            db.close()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    logger.info("Application startup complete")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Release pooled database connections"""
    logger.info("Shutting down application")
    engine.dispose()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "lms.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
