from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import time
import logging

from .api.v1.doctor import router as doctor_router
from .core.config import settings
from .core.database import engine, init_db
from .core.exceptions import APIError
from .core.slots import slot_catalog

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Hospital management API: doctor profiles, patients, prescriptions and appointment slots",
    openapi_url="/api/v1/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Middleware setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Only add TrustedHostMiddleware in production, not in testing
if not settings.TESTING:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=["localhost", "127.0.0.1", "*.localhost", "testserver"]
    )

# Custom middleware for request logging and timing
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    
    # Log request
    logger.info(
        "%s %s - Status: %s - Time: %.4fs",
        request.method, request.url.path, response.status_code, process_time
    )
    
    return response

# Exception handlers
@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.detail
        },
        headers=exc.headers
    )

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    messages = []
    for error in errors:
        # Drop the "body"/"query" prefix from the location
        field = ".".join(str(part) for part in error.get("loc", ())[1:]) or "request"
        messages.append(f"{field}: {error.get('msg')}")
    
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "; ".join(messages),
            "detail": jsonable_encoder(errors, custom_encoder={Exception: str})
        }
    )

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }
    )

@app.exception_handler(404)
async def not_found_handler(request: Request, exc: Exception):
    # Status handlers take precedence over class handlers
    if isinstance(exc, APIError):
        return await api_error_handler(request, exc)
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "message": "The requested resource was not found",
            "path": str(request.url.path)
        }
    )

@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    logger.error("Internal server error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }
    )

# Include routers
app.include_router(doctor_router, prefix="/api/v1")

@app.on_event("startup")
async def startup_event():
    """Create tables and report the scheduling setup."""
    init_db()
    logger.info(
        "Database ready (%s); offering %d daily slots: %s",
        engine.url.get_backend_name(), len(slot_catalog), ", ".join(slot_catalog)
    )

@app.get("/health")
async def health_check():
    """Report whether the appointment store is reachable."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "database": "unreachable", "version": settings.VERSION}
        )
    
    return {
        "status": "healthy",
        "database": "ok",
        "slots": list(slot_catalog),
        "version": settings.VERSION
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("hms.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
