"""
Crumb Coach Timeline - System Configuration
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): Engine thresholds (throttle, materiality) moved into settings
v1.0.0 (2026-10-05): Initial configuration module
"""

from pydantic_settings import BaseSettings
from pathlib import Path
import os


BACKEND_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """System-wide configuration"""

    # Application
    APP_NAME: str = "Crumb Coach Timeline"
    APP_VERSION: str = "1.1.0"
    DEBUG: bool = False

    # API Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_WORKERS: int = 1  # Bake state lives in process memory

    # Sensor Polling
    SENSOR_POLL_INTERVAL: float = 30.0  # seconds
    SENSOR_POLLING_ENABLED: bool = True
    SENSOR_SIMULATED: bool = True  # No hardware source wired yet

    # Timeline Engine
    AUTO_ADJUST: bool = True
    RECALC_THROTTLE_MINUTES: float = 5.0
    MATERIALITY_THRESHOLD_MINUTES: int = 5

    # WebSocket Configuration
    WS_UPDATE_INTERVAL: float = 5.0  # seconds

    # SQLite Configuration
    SQLITE_DB_PATH: str = str(BACKEND_DIR / "data" / "crumb_timeline.db")

    # File Paths
    DATA_DIR: str = str(BACKEND_DIR / "data")
    LOGS_DIR: str = str(BACKEND_DIR / "logs")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Singleton instance
settings = Settings()


# Create required directories
def init_directories():
    """Create necessary directories if they don't exist"""
    for directory in [settings.DATA_DIR, settings.LOGS_DIR]:
        os.makedirs(directory, exist_ok=True)


if __name__ == "__main__":
    print(f"{settings.APP_NAME} Configuration v{settings.APP_VERSION}")
    print(f"Sensor poll interval: {settings.SENSOR_POLL_INTERVAL}s "
          f"({'simulated' if settings.SENSOR_SIMULATED else 'hardware'})")
    print(f"Auto-adjust: {settings.AUTO_ADJUST} "
          f"(throttle {settings.RECALC_THROTTLE_MINUTES} min, "
          f"materiality {settings.MATERIALITY_THRESHOLD_MINUTES} min)")
    print(f"SQLite: {settings.SQLITE_DB_PATH}")
