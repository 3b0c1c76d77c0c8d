"""
WebSocket manager for real-time updates
"""

import json
import logging
from typing import Dict, List
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

REGISTRATIONS_CHANNEL = "registrations"

class WebSocketManager:
    """Manages WebSocket connections grouped by channel"""

    def __init__(self):
        # channel -> list of websockets
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, channel: str):
        """Accept WebSocket connection and join a channel"""
        await websocket.accept()
        self.active_connections.setdefault(channel, []).append(websocket)
        logger.info(f"WebSocket joined {channel}. Total connections: {len(self.active_connections[channel])}")

    def disconnect(self, websocket: WebSocket, channel: str):
        """Remove WebSocket connection from a channel"""
        connections = self.active_connections.get(channel)
        if not connections or websocket not in connections:
            return
        connections.remove(websocket)
        logger.info(f"WebSocket left {channel}. Remaining connections: {len(connections)}")
        if not connections:
            del self.active_connections[channel]

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send message to specific WebSocket"""
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.error(f"Error sending personal message: {e}")

    async def broadcast(self, channel: str, message: dict):
        """Best-effort delivery to every socket on a channel; broken sockets are dropped"""
        connections = list(self.active_connections.get(channel, []))
        if not connections:
            return

        disconnected = []
        for websocket in connections:
            try:
                await websocket.send_text(json.dumps(message))
            except Exception as e:
                logger.error(f"Error broadcasting to websocket: {e}")
                disconnected.append(websocket)

        for websocket in disconnected:
            self.disconnect(websocket, channel)

    def get_connection_count(self, channel: str) -> int:
        return len(self.active_connections.get(channel, []))

# Global WebSocket manager instance
websocket_manager = WebSocketManager()

router = APIRouter()

@router.websocket("/registrations")
async def registrations_feed(websocket: WebSocket):
    """Live feed of new registrations for the registrant ticker"""
    await websocket_manager.connect(websocket, REGISTRATIONS_CHANNEL)
    try:
        await websocket_manager.send_personal_message({
            "type": "connection",
            "channel": REGISTRATIONS_CHANNEL,
            "connection_count": websocket_manager.get_connection_count(REGISTRATIONS_CHANNEL)
        }, websocket)

        while True:
            data = await websocket.receive_text()
            try:
                client_message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received from WebSocket: {data}")
                continue
            if client_message.get("type") == "ping":
                await websocket_manager.send_personal_message({
                    "type": "pong",
                    "timestamp": client_message.get("timestamp")
                }, websocket)
    except WebSocketDisconnect:
        pass
    finally:
        websocket_manager.disconnect(websocket, REGISTRATIONS_CHANNEL)
