import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from app.api.deps import parse_user_id
from app.services.realtime import realtime_hub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws/{user_id}")
async def realtime_channel(websocket: WebSocket, user_id: int):
    """Subscribe to ``user_{id}``: new_match and match_unmatched events."""
    # Same gateway identity as the HTTP routes; only the owner may listen
    caller_id = parse_user_id(websocket.headers.get("x-user-id"))
    if caller_id is None or caller_id != user_id:
        logger.warning(f"Rejected realtime subscription to user {user_id} from {caller_id}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await realtime_hub.connect(user_id, websocket)
    try:
        while True:
            # Clients only listen; inbound frames are keep-alives
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        realtime_hub.disconnect(user_id, websocket)
