"""Event names, room names and the immutable event envelope."""

from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet

from pydantic import BaseModel, ConfigDict, Field

# Targeted at the per-patient room
UPDATE_RECORDS = "update-records"
UPDATE_PRESCRIPTIONS = "update-prescriptions"

# Broadcast to the role dashboards
MEDICAL_RECORD_ADDED = "medicalRecordAdded"
PRESCRIPTION_ADDED = "prescriptionAdded"

PATIENT_DASHBOARD_ROOM = "patient-dashboard"
PHARMACIST_DASHBOARD_ROOM = "pharmacist-dashboard"
BROADCAST_ROOMS = (PATIENT_DASHBOARD_ROOM, PHARMACIST_DASHBOARD_ROOM)


def patient_room(patient_id: str) -> str:
    return f"patient_{patient_id}"


def role_room(role: str) -> str:
    return f"{role}-dashboard"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class Event(BaseModel):
    """A notification as handed to every subscribed connection.

    Frozen so one instance can be shared by all receivers of a fan-out.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    rooms: FrozenSet[str] = frozenset()
    payload: Dict[str, Any] = Field(default_factory=dict)
    timestamp: str = Field(default_factory=utc_timestamp)

    @property
    def patient_id(self):
        return self.payload.get("patientId")

    def to_message(self) -> dict:
        """Wire form sent over the WebSocket channel"""
        return {"event": self.type, "data": self.payload}
