"""
WebSocket API Endpoints for the Walk Check-in service.

Streams a participant's notifications (e.g. removal from a team) while
their page is open.
"""

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from app.services.auth_service import AuthError, TokenRole, decode_token
from app.services.notification_manager import notification_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["WebSocket"])


@router.websocket("/notifications")
async def notifications_socket(websocket: WebSocket, token: str = Query(...)):
    """
    Notification stream for one participant.

    The bearer token travels as a query parameter because browsers cannot
    set headers on WebSocket handshakes.
    """
    try:
        payload = decode_token(token, expected_role=TokenRole.PARTICIPANT)
    except AuthError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    participant_id = payload["sub"]
    await websocket.accept()
    await notification_manager.register_connection(participant_id, websocket)
    try:
        while True:
            # Clients only send keep-alives
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await notification_manager.unregister_connection(participant_id, websocket)
