"""Push channel: WebSocket subscribers registered with the broadcast hub."""
from fastapi import APIRouter, Depends, WebSocket

from app.services.hub import BroadcastHub
from app.services.state import get_hub

router = APIRouter()


@router.websocket("/ws")
async def live_updates(websocket: WebSocket, hub: BroadcastHub = Depends(get_hub)):
    """
    Register the connection with the hub and hold it open.
    Inbound frames are read and discarded; they only tell us when the peer leaves.
    """
    await websocket.accept()
    subscriber = hub.register(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        hub.unregister(subscriber)
        await subscriber.close()
