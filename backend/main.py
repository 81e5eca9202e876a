"""
Crumb Coach Timeline - Main FastAPI Application
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-14): Sensor API and live WebSocket timeline updates
v1.0.0 (2026-10-12): Initial FastAPI application hosting the smart timeline
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import asyncio
import logging

from config import settings, init_directories
from api import timelines, sensors, ws
from services.bake_manager import get_manager

# Configure logging
init_directories()
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(f'{settings.LOGS_DIR}/api.log'),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)


# Background tasks
background_tasks = set()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    # Initialize database
    from models import init_db
    await init_db()

    manager = get_manager()
    manager.on_update(ws.broadcast_timeline_update)

    # Sensor Polling Service
    if settings.SENSOR_POLLING_ENABLED:
        poller_task = asyncio.create_task(manager.poller.start_polling())
        background_tasks.add(poller_task)
    else:
        logger.info("Sensor polling disabled")

    logger.info("All services started successfully")

    yield

    # Shutdown
    logger.info("Shutting down services...")
    manager.poller.stop()

    for task in background_tasks:
        task.cancel()

    await asyncio.gather(*background_tasks, return_exceptions=True)
    background_tasks.clear()

    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Smart bake timeline that adapts step durations to the kitchen environment",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(timelines.router, prefix="/api")
app.include_router(sensors.router, prefix="/api")
app.include_router(ws.router, prefix="/api/ws", tags=["WebSocket"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "app": settings.APP_NAME
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        workers=settings.API_WORKERS
    )
