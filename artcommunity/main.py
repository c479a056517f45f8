"""
Main FastAPI application
AI Art Community Service
"""
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from contextlib import asynccontextmanager
import logging
import uvicorn
from artcommunity.config.settings import settings
from artcommunity.database import init_db
from artcommunity.errors import ServiceError, UpstreamError
from artcommunity.generation.bfl_client import BFLClient
from artcommunity.api.endpoints import router
from artcommunity.api.auth import router as auth_router
from artcommunity.api.collections import router as collections_router
from artcommunity.api.prompts import router as prompts_router
from artcommunity.api.statistics import router as statistics_router
from artcommunity.api.generation import router as generation_router
from artcommunity.api.history import router as history_router
from artcommunity.api.schemas import ErrorResponse
# Configure logging
handlers = [logging.StreamHandler()]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE))
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=handlers
)
logger = logging.getLogger(__name__)
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting AI Art Community Service...")
    # Initialize database
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    app.state.generation_client = BFLClient()
    logger.info("Service startup completed")
    yield
    logger.info("Shutting down AI Art Community Service...")
    await app.state.generation_client.aclose()
# Create FastAPI application
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description="""
    Backend of an AI art community:
    - Generation requests relayed to the Black Forest Labs API
    - Community feed with search, filters and trending/popular sorting
    - Collections, likes, generation history and statistics
    - Saved prompts with categories and tags
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)
# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify actual origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Include API routers
app.include_router(router, prefix="/api", tags=["Community"])
app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(collections_router, prefix="/api", tags=["Collections"])
app.include_router(prompts_router, prefix="/api", tags=["Prompts"])
app.include_router(statistics_router, prefix="/api", tags=["Statistics"])
app.include_router(generation_router, prefix="/api", tags=["Generation"])
app.include_router(history_router, prefix="/api", tags=["History"])
# Exception handlers
@app.exception_handler(UpstreamError)
async def upstream_exception_handler(request, exc: UpstreamError):
    """Generation API unreachable"""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error="Internal Server Error", message=exc.message).model_dump()
    )
@app.exception_handler(ServiceError)
async def service_exception_handler(request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    """Malformed request bodies and query parameters"""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    location = ".".join(str(part) for part in errors[0].get("loc", ())) if errors else ""
    return JSONResponse(
        status_code=400,
        content={"error": f"{location}: {message}" if location else message}
    )
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc: Exception):
    """Global exception handler for unhandled errors"""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error"}
    )
# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with service information"""
    return {
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs": "/docs",
        "health": "/api/health"
    }
# Additional utility endpoints
@app.get("/ping")
async def ping():
    """Simple ping endpoint"""
    return {"message": "pong"}
if __name__ == "__main__":
    uvicorn.run(
        "artcommunity.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )
