"""
Crumb Coach Timeline - Timeline API
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-14): Recalibrate, auto-adjust toggle and adjustment history
v1.0.0 (2026-10-12): Initial bake timeline endpoints
"""

from fastapi import APIRouter, HTTPException, Depends
from typing import List
import logging

from models.timeline import (
    TimelineState, TimelineSummary, TimelineCreate, DurationOverride,
    RecalibrateRequest, AutoAdjustUpdate,
)
from services.bake_manager import BakeManager, get_manager
from services.timeline_engine import TimelineError, StepNotFoundError

router = APIRouter(prefix="/timelines", tags=["Timelines"])
logger = logging.getLogger(__name__)


def _get_store(manager: BakeManager, bake_id: str):
    try:
        return manager.get(bake_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Bake '{bake_id}' not found")


async def _run(action, *args) -> TimelineState:
    """Translate engine errors into HTTP errors"""
    try:
        return await action(*args)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    except StepNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TimelineError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("", response_model=List[TimelineState])
async def list_timelines(manager: BakeManager = Depends(get_manager)):
    """All in-progress bakes"""
    return manager.list_bakes()


@router.post("", response_model=TimelineState, status_code=201)
async def start_timeline(request: TimelineCreate, manager: BakeManager = Depends(get_manager)):
    """Start a bake; steps default to the sourdough template"""
    try:
        return await manager.start_bake(
            request.bake_id,
            seeds=request.steps,
            started_at=request.started_at,
            auto_adjust=request.auto_adjust,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{bake_id}", response_model=TimelineState)
async def get_timeline(bake_id: str, manager: BakeManager = Depends(get_manager)):
    return _get_store(manager, bake_id).state


@router.get("/{bake_id}/summary", response_model=TimelineSummary)
async def get_summary(bake_id: str, manager: BakeManager = Depends(get_manager)):
    """Progress and ETA for the timeline header"""
    return _get_store(manager, bake_id).summary()


@router.delete("/{bake_id}")
async def abandon_timeline(bake_id: str, manager: BakeManager = Depends(get_manager)):
    """Abandon a bake and discard its timeline"""
    try:
        manager.abandon(bake_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Bake '{bake_id}' not found")
    return {"success": True, "message": f"Bake {bake_id} abandoned"}


@router.post("/{bake_id}/steps/{step_id}/done", response_model=TimelineState)
async def mark_step_done(bake_id: str, step_id: str, manager: BakeManager = Depends(get_manager)):
    return await _run(manager.mark_done, bake_id, step_id)


@router.post("/{bake_id}/steps/{step_id}/skip", response_model=TimelineState)
async def skip_step(bake_id: str, step_id: str, manager: BakeManager = Depends(get_manager)):
    return await _run(manager.skip, bake_id, step_id)


@router.put("/{bake_id}/steps/{step_id}/duration", response_model=TimelineState)
async def override_duration(bake_id: str, step_id: str, request: DurationOverride,
                            manager: BakeManager = Depends(get_manager)):
    """Manual override; bypasses the recalculation throttle"""
    return await _run(manager.override_duration, bake_id, step_id,
                      request.adjusted_duration_minutes, request.reason)


@router.post("/{bake_id}/recalibrate", response_model=TimelineState)
async def recalibrate(bake_id: str, request: RecalibrateRequest,
                      manager: BakeManager = Depends(get_manager)):
    """Shift all remaining steps by delta_minutes"""
    return await _run(manager.recalibrate, bake_id, request.delta_minutes)


@router.put("/{bake_id}/auto-adjust", response_model=TimelineState)
async def set_auto_adjust(bake_id: str, request: AutoAdjustUpdate,
                          manager: BakeManager = Depends(get_manager)):
    return await _run(manager.set_auto_adjust, bake_id, request.enabled)


@router.delete("/{bake_id}/recommendations/{rec_id}", response_model=TimelineState)
async def dismiss_recommendation(bake_id: str, rec_id: str,
                                 manager: BakeManager = Depends(get_manager)):
    """Dismiss until the next recalculation pass"""
    return await _run(manager.dismiss_recommendation, bake_id, rec_id)


@router.get("/{bake_id}/adjustments")
async def get_adjustment_history(bake_id: str, manager: BakeManager = Depends(get_manager)):
    """Persisted adjustment records for a bake (survive completion)"""
    return await manager.get_adjustment_history(bake_id)
