from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.errors import ReservationError, StoreUnavailable
from app.api import availability, bookings, status
from app.core.logger import setup_logging, logger
from app.services.db_service import build_store
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting Table Reservations Backend")
    if getattr(app.state, "store", None) is None:
        app.state.store = build_store(settings)
    if not settings.ADMIN_API_TOKEN:
        logger.warning("⚠️ ADMIN_API_TOKEN is not set, admin endpoints are locked")
    acquire = getattr(app.state.store, "acquire_connection", None)
    if acquire:
        # A missing connection target is fatal; an unreachable store is retried on first use
        try:
            await acquire()
        except StoreUnavailable as e:
            logger.warning(f"⚠️ Booking store unavailable at startup, will reconnect on first request: {e.message}")
    yield
    # Shutdown
    await app.state.store.close()
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {type(exc).__name__}: {exc.message}")
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path}: {type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "message": exc.message}
    )

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"⚠️ Invalid request body for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"status": "error", "message": "Invalid request body"}
    )

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"🔥 UNHANDLED ERROR: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "detail": "An unexpected error occurred. Please contact support."}
    )

# Include routers
app.include_router(availability.router, prefix=settings.API_V1_STR, tags=["Availability"])
app.include_router(bookings.router, prefix=settings.API_V1_STR, tags=["Bookings"])
app.include_router(status.router, prefix=settings.API_V1_STR, tags=["Status"])

@app.get("/health")
async def health_check_std():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
