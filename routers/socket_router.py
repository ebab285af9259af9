import asyncio
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from auth import decode_access_token
from config import VALID_ROLES
from dependencies import get_hub
from realtime.events import Event, patient_room, role_room
from realtime.hub import Connection, Hub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Real-time"])


def _control(event_type: str, **data) -> Event:
    return Event(type=event_type, payload=data)


def resolve_room(event_name: str, data) -> Optional[str]:
    """Room named by a client message, None when the message is not a room request"""
    if not isinstance(data, str) or not data.strip():
        return None
    data = data.strip()
    if event_name in ("join", "leave"):
        return data
    if event_name in ("joinPatientRoom", "leavePatientRoom"):
        return patient_room(data)
    if event_name == "join-role" and data in VALID_ROLES:
        return role_room(data)
    return None


def handle_client_message(hub: Hub, connection: Connection, raw: str):
    """Apply one client frame; replies go through the connection queue"""
    try:
        message = json.loads(raw)
    except ValueError:
        connection.push(_control("error", message="Messages must be JSON"))
        return
    if not isinstance(message, dict):
        connection.push(_control("error", message="Messages must be JSON objects"))
        return

    event_name = message.get("event")
    room = resolve_room(event_name, message.get("data"))
    if room is None:
        connection.push(_control("error", message=f"Unsupported message: {event_name}"))
        return

    if event_name.startswith("leave"):
        hub.leave(connection, room)
        connection.push(_control("left", room=room))
    else:
        hub.join(connection, room)
        connection.push(_control("joined", room=room))


async def _forward_events(websocket: WebSocket, connection: Connection):
    while True:
        event = await connection.receive()
        if event is None:
            return
        try:
            await websocket.send_json(event.to_message())
        except (WebSocketDisconnect, RuntimeError):
            logger.debug("Dropped %s for closed socket %s", event.type, connection.id)
            return


@router.websocket("/ws")
async def realtime_channel(websocket: WebSocket, token: Optional[str] = None, hub: Hub = Depends(get_hub)):
    """Duplex channel: clients join rooms, the server pushes room events"""
    claims = None
    if token is not None:
        claims = decode_access_token(token)
        if claims is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

    await websocket.accept()
    connection = hub.connect()
    connection.push(_control("connected", id=connection.id))
    if claims:
        hub.join(connection, role_room(claims["role"]))
        connection.push(_control("joined", room=role_room(claims["role"])))

    sender = asyncio.create_task(_forward_events(websocket, connection))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info("Socket %s disconnected", connection.id)
                break
            raw = message.get("text")
            if raw is None:
                connection.push(_control("error", message="Messages must be JSON text frames"))
                continue
            handle_client_message(hub, connection, raw)
    finally:
        hub.disconnect(connection)
        sender.cancel()
