from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from templebook.config import settings
from templebook.errors import AppError
from templebook.logging_config import configure_logging, get_logger
from templebook.auth import router as auth_router
from templebook.temples import router as temples_router
from templebook.bookings import router as bookings_router
from templebook.admin import router as admin_router

configure_logging(settings.LOG_DIR, settings.LOG_LEVEL)
logger = get_logger()

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Temple Visit Booking System API",
    docs_url="/docs",
    redoc_url="/redoc"
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"REQUEST: {request.method} {request.url.path}")

    try:
        response = await call_next(request)
        logger.info(f"RESPONSE: {response.status_code} {request.url.path}")
        return response

    except Exception as e:
        logger.error(f"ERROR: {request.url.path} -> {str(e)}")
        raise

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message} | {request.method} {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(
    auth_router,
    prefix=f"{settings.API_V1_STR}/auth",
    tags=["Authentication"]
)

app.include_router(
    temples_router,
    prefix=f"{settings.API_V1_STR}/temples",
    tags=["Temples"]
)

app.include_router(
    bookings_router,
    prefix=f"{settings.API_V1_STR}/bookings",
    tags=["Booking & Ticketing"]
)

app.include_router(
    admin_router,
    prefix=f"{settings.API_V1_STR}/admin",
    tags=["Admin"]
)

@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Temple Visit Booking System API",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
