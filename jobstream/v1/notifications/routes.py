"""
WebSocket endpoint for the real-time job progress hub.
"""

import asyncio
import contextlib

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from jobstream.config.logging import get_logger
from jobstream.v1.notifications.hub import HubSession, JobProgressHub
from jobstream.v1.runtime import HubDep

logger = get_logger(__name__)
router = APIRouter(tags=["hub"])


@router.websocket("/hub/job-progress", name="job_progress_hub")
async def job_progress_hub(websocket: WebSocket, hub: JobProgressHub = HubDep) -> None:
    """Stream job events to the client and accept join/leave actions."""
    await websocket.accept()
    session = hub.connect()
    session.send({"event": "Connected", "data": {"session_id": session.id}})
    sender = asyncio.create_task(_pump(websocket, session))

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                session.send(
                    {"event": "Error", "data": {"message": "Message must be JSON"}}
                )
                continue
            await hub.handle_message(session, message)
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
        await hub.disconnect(session.id)


async def _pump(websocket: WebSocket, session: HubSession) -> None:
    """Forward the session's outbox to the socket until cancelled."""
    while True:
        message = await session.outbox.get()
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError):
            logger.warning("Dropping message for closed session", session_id=session.id)
            return
