"""Dashboard-side subscription handling.

A ``DashboardSubscription`` stands in for one mounted dashboard: it opens a
hub connection, joins the rooms its role cares about, and folds incoming
events into a local ``DashboardView``.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from realtime.events import (
    MEDICAL_RECORD_ADDED,
    PATIENT_DASHBOARD_ROOM,
    PHARMACIST_DASHBOARD_ROOM,
    PRESCRIPTION_ADDED,
    UPDATE_PRESCRIPTIONS,
    UPDATE_RECORDS,
    Event,
    patient_room,
    role_room,
)
from realtime.hub import Connection, Hub

logger = logging.getLogger(__name__)

RECORD_EVENTS = (UPDATE_RECORDS, MEDICAL_RECORD_ADDED)
PRESCRIPTION_EVENTS = (UPDATE_PRESCRIPTIONS, PRESCRIPTION_ADDED)

ROLE_EVENTS = {
    "patient": RECORD_EVENTS + PRESCRIPTION_EVENTS,
    "pharmacist": PRESCRIPTION_EVENTS,
    "doctor": (UPDATE_RECORDS, UPDATE_PRESCRIPTIONS),
}


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SUBSCRIBED = "subscribed"


@dataclass
class DashboardView:
    patient_id: Optional[str] = None
    records: List[dict] = field(default_factory=list)
    prescriptions: List[dict] = field(default_factory=list)


def merge_item(items: List[dict], item: dict):
    """Replace the entry with the same id, otherwise put the item first.

    Returns True when the item was new.
    """
    item_id = item.get("id")
    if item_id is not None:
        for index, existing in enumerate(items):
            if existing.get("id") == item_id:
                items[index] = item
                return False
    items.insert(0, item)
    return True


class DashboardSubscription:
    def __init__(
        self,
        hub: Hub,
        role: str,
        patient_id: Optional[str] = None,
        on_update: Optional[Callable[[Event], None]] = None,
    ):
        if role not in ROLE_EVENTS:
            raise ValueError(f"Unknown dashboard role: {role}")
        if role == "patient" and not patient_id:
            raise ValueError("A patient dashboard needs a patient id")

        self.hub = hub
        self.role = role
        self.on_update = on_update
        self.view = DashboardView(patient_id=patient_id)
        self.state = ConnectionState.DISCONNECTED
        self.connection: Optional[Connection] = None
        self._listeners: Dict[str, List[Callable[[Event], None]]] = {}
        self._registered: List[tuple] = []

    def _set_state(self, state: ConnectionState):
        logger.debug("%s dashboard: %s -> %s", self.role, self.state.value, state.value)
        self.state = state

    def rooms_for_view(self) -> List[str]:
        if self.role == "patient":
            rooms = [PATIENT_DASHBOARD_ROOM]
        elif self.role == "pharmacist":
            rooms = [PHARMACIST_DASHBOARD_ROOM]
        else:
            # nothing publishes here yet; doctors follow the patient on screen
            rooms = [role_room(self.role)]
        if self.view.patient_id:
            rooms.insert(0, patient_room(self.view.patient_id))
        return rooms

    # listener registry

    def on(self, event_type: str, handler: Callable[[Event], None]):
        self._listeners.setdefault(event_type, []).append(handler)

    def off(self, event_type: str, handler: Callable[[Event], None]):
        handlers = self._listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._listeners.pop(event_type, None)

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(handlers) for handlers in self._listeners.values())

    # lifecycle

    def mount(self):
        if self.state is not ConnectionState.DISCONNECTED:
            raise RuntimeError(f"{self.role} dashboard is already mounted")

        self._set_state(ConnectionState.CONNECTING)
        self.connection = self.hub.connect()
        self._set_state(ConnectionState.CONNECTED)

        for room in self.rooms_for_view():
            self.hub.join(self.connection, room)
        for event_type in ROLE_EVENTS[self.role]:
            handler = self._on_record if event_type in RECORD_EVENTS else self._on_prescription
            self.on(event_type, handler)
            self._registered.append((event_type, handler))
        self._set_state(ConnectionState.SUBSCRIBED)

    def unmount(self):
        if self.state is ConnectionState.DISCONNECTED:
            return

        for event_type, handler in self._registered:
            self.off(event_type, handler)
        self._registered = []
        for room in list(self.connection.rooms):
            self.hub.leave(self.connection, room)
        self._set_state(ConnectionState.CONNECTED)

        self.hub.disconnect(self.connection)
        self.connection = None
        self._set_state(ConnectionState.DISCONNECTED)

    def show_patient(self, patient_id: str, records: Optional[List[dict]] = None,
                     prescriptions: Optional[List[dict]] = None):
        """Switch the displayed patient and load its fetched snapshot"""
        if self.role == "patient" and patient_id != self.view.patient_id:
            raise ValueError("A patient dashboard only shows its own patient")

        previous = self.view.patient_id
        if self.state is ConnectionState.SUBSCRIBED and previous != patient_id:
            if previous:
                self.hub.leave(self.connection, patient_room(previous))
            self.hub.join(self.connection, patient_room(patient_id))

        self.view = DashboardView(
            patient_id=patient_id,
            records=copy.deepcopy(list(records or [])),
            prescriptions=copy.deepcopy(list(prescriptions or [])),
        )

    # delivery

    def dispatch(self, event: Event):
        for handler in list(self._listeners.get(event.type, ())):
            handler(event)

    def pump(self) -> int:
        """Dispatch every event that has arrived so far"""
        if self.connection is None:
            return 0
        events = self.connection.drain()
        for event in events:
            self.dispatch(event)
        return len(events)

    async def listen(self):
        """Dispatch events as they arrive until the connection closes"""
        connection = self.connection
        if connection is None:
            return
        while True:
            event = await connection.receive()
            if event is None:
                return
            self.dispatch(event)

    def _matches(self, event: Event) -> bool:
        return self.view.patient_id is not None and event.patient_id == self.view.patient_id

    def _on_record(self, event: Event):
        record = event.payload.get("record")
        if not self._matches(event) or not isinstance(record, dict):
            return
        if merge_item(self.view.records, copy.deepcopy(record)) and self.on_update:
            self.on_update(event)

    def _on_prescription(self, event: Event):
        prescription = event.payload.get("prescription")
        if not self._matches(event) or not isinstance(prescription, dict):
            return
        if merge_item(self.view.prescriptions, copy.deepcopy(prescription)) and self.on_update:
            self.on_update(event)
