"""In-process publish/subscribe hub.

Connections join named rooms; publishing to a room hands the event to every
connection that is a member at the moment of the call. All state changes run
without awaiting, so on a single event loop they are atomic with respect to
each other and need no locks.
"""

import asyncio
import copy
import logging
import uuid
from typing import Dict, Iterable, List, Optional

from realtime.events import Event

logger = logging.getLogger(__name__)


class UnknownConnectionError(LookupError):
    """Raised when a hub operation names a connection it does not hold."""


class Connection:
    """One subscriber channel with its own FIFO of undelivered events."""

    def __init__(self):
        self.id = uuid.uuid4().hex
        self.rooms = set()
        self.connected = True
        self._queue: asyncio.Queue = asyncio.Queue()

    def __repr__(self):
        return f"<Connection {self.id[:8]} rooms={sorted(self.rooms)} connected={self.connected}>"

    def push(self, event: Event) -> bool:
        """Queue an event for delivery; False if the connection is closed"""
        if not self.connected:
            return False
        self._queue.put_nowait(event)
        return True

    def drain(self) -> List[Event]:
        """Take every event queued so far without waiting"""
        events = []
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return events
            if item is not None:
                events.append(item)

    async def receive(self) -> Optional[Event]:
        """Wait for the next event; None once the connection is closed"""
        if not self.connected and self._queue.empty():
            return None
        return await self._queue.get()

    def _close(self):
        self.connected = False
        self.rooms.clear()
        dropped = self.drain()
        if dropped:
            logger.debug("Dropped %d undelivered event(s) for %s", len(dropped), self.id)
        # wakes a pending receive()
        self._queue.put_nowait(None)


class Hub:
    def __init__(self):
        self._connections: Dict[str, Connection] = {}
        # room name -> members in join order
        self._rooms: Dict[str, Dict[str, Connection]] = {}

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def rooms(self) -> List[str]:
        return list(self._rooms)

    def members(self, room: str) -> List[str]:
        return list(self._rooms.get(room, ()))

    def _require(self, connection: Connection) -> Connection:
        if self._connections.get(connection.id) is not connection:
            raise UnknownConnectionError(f"Connection {connection.id} is not registered with this hub")
        return connection

    def connect(self) -> Connection:
        connection = Connection()
        self._connections[connection.id] = connection
        logger.info("Connection %s opened", connection.id)
        return connection

    def join(self, connection: Connection, room: str):
        self._require(connection)
        members = self._rooms.setdefault(room, {})
        if connection.id in members:
            return
        members[connection.id] = connection
        connection.rooms.add(room)
        logger.info("Connection %s joined room %s", connection.id, room)

    def leave(self, connection: Connection, room: str):
        self._require(connection)
        members = self._rooms.get(room)
        if members is None or connection.id not in members:
            return
        # the room itself stays, even when empty
        del members[connection.id]
        connection.rooms.discard(room)
        logger.info("Connection %s left room %s", connection.id, room)

    def disconnect(self, connection: Connection):
        """Remove the connection from every room and drop what it has not received"""
        if self._connections.get(connection.id) is not connection:
            return
        for room in list(connection.rooms):
            self._rooms[room].pop(connection.id, None)
        del self._connections[connection.id]
        connection._close()
        logger.info("Connection %s closed", connection.id)

    def publish(self, room: str, event_type: str, payload: dict) -> int:
        """Deliver to the current members of one room. Returns the delivery count."""
        return self.broadcast((room,), event_type, payload)

    def broadcast(self, rooms: Iterable[str], event_type: str, payload: dict) -> int:
        """Deliver one event to the members of several rooms.

        A connection that belongs to more than one target room receives the
        event once. Membership is read now; later joiners never see it.
        """
        rooms = tuple(rooms)
        event = Event(type=event_type, rooms=frozenset(rooms), payload=copy.deepcopy(payload))

        seen = set()
        delivered = 0
        for room in rooms:
            for connection in list(self._rooms.get(room, {}).values()):
                if connection.id in seen:
                    continue
                seen.add(connection.id)
                if connection.push(event):
                    delivered += 1
                else:
                    logger.debug("Skipped closed connection %s for %s", connection.id, event_type)

        logger.info("Published %s to %s (%d delivered)", event_type, ", ".join(rooms), delivered)
        return delivered
