import logging
from fastapi import Depends, FastAPI, APIRouter, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mytime_server.api_service import schemas
from mytime_server.api_service.core import repository
from mytime_server.api_service.core.database import AsyncSessionLocal, get_db, init_db
from mytime_server.api_service.core.errors import EntryValidationError, MyTimeError
from mytime_server.api_service.core.settings import settings
from mytime_server.api_service.api_v1.endpoints import activity_types, time_logs, day, summary

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting up MyTime API Service...")
    try:
        await init_db()
        async with AsyncSessionLocal() as db:
            wake = await repository.seed_default_categories(
                db, settings.WAKE_CATEGORY_NAME, seed_defaults=settings.SEED_DEFAULT_CATEGORIES
            )
        logger.info(f"Database initialized successfully. Wake category: '{wake.name}' (id={wake.id})")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down MyTime API Service...")


app = FastAPI(
    title="MyTime API Service",
    description="Daily activity time tracking: activity types, day timelines and time analysis.",
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EntryValidationError)
async def entry_validation_error_handler(request: Request, exc: EntryValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(MyTimeError)
async def mytime_error_handler(request: Request, exc: MyTimeError):
    logger.exception(f"Request {request.method} {request.url.path} failed: {exc}", exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Server error"})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Server error"})


# Create API router
api_router = APIRouter(prefix=settings.API_V1_STR)

# Include all endpoint routers
api_router.include_router(activity_types.router, prefix="/activity-types", tags=["Activity Types"])
api_router.include_router(time_logs.router, prefix="/time-logs", tags=["Time Logs"])
api_router.include_router(day.router, prefix="/day", tags=["Daily Timeline"])
api_router.include_router(summary.router, tags=["Summary"])

# Include the router in the main app
app.include_router(api_router)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the MyTime API Service",
        "version": settings.VERSION,
        "docs": f"{settings.API_V1_STR}/docs"
    }


# Health check endpoint
@app.get("/health", response_model=schemas.HealthStatus, tags=["Health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    database_connected = True
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database", exc_info=True)
        database_connected = False
    return schemas.HealthStatus(
        status="healthy" if database_connected else "degraded",
        service="mytime-api",
        version=settings.VERSION,
        database_connected=database_connected,
    )


if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Uvicorn server for development...")
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level="info")
