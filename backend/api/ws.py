"""
Crumb Coach Timeline - WebSocket API
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-19): Optional bake_id subscription; snapshots carry the summary
v1.0.0 (2026-10-12): Live timeline updates for the bake screen
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends, Query
from typing import Dict, List, Optional
import asyncio
import json
import logging

from config import settings
from models.timeline import TimelineState
from services import timeline_engine as engine
from services.bake_manager import BakeManager, get_manager

router = APIRouter()
logger = logging.getLogger(__name__)

# Connected clients and the bake each one follows (None = every bake)
subscriptions: Dict[WebSocket, Optional[str]] = {}


def timeline_payload(state: TimelineState) -> dict:
    """Timeline plus the header summary, as sent to the bake screen"""
    summary = engine.summarize(state.bake_id, state.steps, state.factors, state.reading)
    return {
        "timeline": state.model_dump(mode='json'),
        "summary": summary.model_dump(mode='json'),
    }


def snapshot(manager: BakeManager, bake_id: Optional[str]) -> List[dict]:
    return [timeline_payload(state) for state in manager.list_bakes()
            if bake_id is None or state.bake_id == bake_id]


@router.websocket("/live")
async def websocket_endpoint(websocket: WebSocket,
                             bake_id: Optional[str] = Query(None),
                             manager: BakeManager = Depends(get_manager)):
    """
    Live timeline feed. Pass ?bake_id= to follow one bake only.
    Sends a snapshot on connect and on each idle interval; changes are pushed
    as they happen via broadcast_timeline_update
    """
    await websocket.accept()
    subscriptions[websocket] = bake_id
    logger.info(f"WebSocket client connected ({bake_id or 'all bakes'}). "
                f"Total connections: {len(subscriptions)}")

    try:
        await websocket.send_json({"type": "initial", "data": snapshot(manager, bake_id)})

        while True:
            try:
                data = await asyncio.wait_for(websocket.receive_text(),
                                              timeout=settings.WS_UPDATE_INTERVAL)
                if data == "ping":
                    await websocket.send_text("pong")

            except asyncio.TimeoutError:
                await websocket.send_json({"type": "update", "data": snapshot(manager, bake_id)})

    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        subscriptions.pop(websocket, None)
        logger.info(f"WebSocket client removed. Total connections: {len(subscriptions)}")


async def broadcast_timeline_update(state: TimelineState):
    """
    Push a changed timeline to clients following that bake (or all bakes)
    Registered with the bake manager at startup
    """
    targets = [ws for ws, followed in subscriptions.items()
               if followed is None or followed == state.bake_id]
    if not targets:
        return

    message = json.dumps({
        "type": "timeline_update",
        "bake_id": state.bake_id,
        "data": timeline_payload(state),
    })

    for connection in targets:
        try:
            await connection.send_text(message)
        except Exception as e:
            logger.error(f"Failed to send to client: {e}")
            subscriptions.pop(connection, None)
