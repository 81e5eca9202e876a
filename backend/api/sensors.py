"""
Crumb Coach Timeline - Sensor API
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-19): 500 when a submitted reading cannot be applied to a bake
v1.0.0 (2026-10-12): Current reading, manual reading entry and history
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from datetime import datetime
from typing import Optional

from models.environment import EnvironmentReading, ReadingCreate, SensorSnapshot
from services.adjustment_factors import factors_for, environment_label
from services.bake_manager import BakeManager, ReadingNotAppliedError, get_manager

router = APIRouter(prefix="/sensors", tags=["Sensors"])


@router.get("/current", response_model=SensorSnapshot)
async def get_current(manager: BakeManager = Depends(get_manager)):
    """Latest reading and the factors it produces"""
    reading = manager.poller.latest
    return SensorSnapshot(
        reading=reading,
        factors=factors_for(reading),
        label=environment_label(reading),
    )


@router.get("/status")
async def get_status(manager: BakeManager = Depends(get_manager)):
    """Poller status"""
    return manager.poller.get_status()


@router.post("/readings", response_model=EnvironmentReading, status_code=201)
async def submit_reading(data: ReadingCreate,
                         bake_id: Optional[str] = Query(None),
                         manager: BakeManager = Depends(get_manager)):
    """Record a manually measured reading and apply it to active bakes"""
    reading = EnvironmentReading(
        temperature_c=data.temperature_c,
        humidity_pct=data.humidity_pct,
        observed_at=data.observed_at or datetime.now(),
    )
    try:
        return await manager.submit_reading(reading, bake_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Bake '{bake_id}' not found")
    except ReadingNotAppliedError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/readings")
async def get_readings(limit: int = Query(50, ge=1, le=1000),
                       manager: BakeManager = Depends(get_manager)):
    """Most recent persisted readings, newest first"""
    return await manager.get_recent_readings(limit)
