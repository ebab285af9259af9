import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from database import PatientStore
from exceptions import NotFoundError, ValidationError
from realtime.events import (
    BROADCAST_ROOMS,
    MEDICAL_RECORD_ADDED,
    PRESCRIPTION_ADDED,
    UPDATE_PRESCRIPTIONS,
    UPDATE_RECORDS,
    patient_room,
)
from realtime.hub import Hub

logger = logging.getLogger(__name__)

SERVER_FIELDS = ("id", "date")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PatientWriteService:
    """Validate, store, then notify.

    Nothing is published unless the store accepted the write. Every
    successful write is sent to the patient's own room and broadcast to the
    patient and pharmacist dashboards.
    """

    def __init__(self, store: PatientStore, hub: Hub, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.hub = hub
        self.clock = clock

    def _resolve_patient(self, patient_id: Optional[Union[str, int]], body: Optional[dict], missing_message: str) -> dict:
        if not patient_id or not str(patient_id).strip() or not isinstance(body, dict) or not body:
            raise ValidationError(missing_message)
        patient = self.store.get_patient(str(patient_id).strip())
        if patient is None:
            raise NotFoundError("Patient not found")
        return patient

    def _stamp(self, new_id: str, body: dict) -> dict:
        item = {"id": new_id}
        item.update({key: value for key, value in body.items() if key not in SERVER_FIELDS})
        item["date"] = self.clock().date().isoformat()
        return item

    def _notify(self, patient_id: str, key: str, item: dict, targeted: str, broadcast: str):
        payload = {"patientId": patient_id, key: item, "timestamp": self.clock().isoformat()}
        self.hub.publish(patient_room(patient_id), targeted, payload)
        self.hub.broadcast(BROADCAST_ROOMS, broadcast, payload)

    def add_record(self, patient_id_or_username: Optional[Union[str, int]], record: Optional[dict]) -> dict:
        patient = self._resolve_patient(
            patient_id_or_username, record, "Patient ID and record are required"
        )
        new_record = self.store.append_record(
            patient["id"], self._stamp(self.store.next_record_id(), record)
        )
        logger.info("Added record %s for patient %s", new_record["id"], patient["id"])

        self._notify(patient["id"], "record", new_record, UPDATE_RECORDS, MEDICAL_RECORD_ADDED)
        return new_record

    def add_prescription(self, patient_id_or_username: Optional[Union[str, int]], prescription: Optional[dict]) -> dict:
        patient = self._resolve_patient(
            patient_id_or_username, prescription, "Patient ID and prescription are required"
        )
        new_prescription = self.store.append_prescription(
            patient["id"], self._stamp(self.store.next_prescription_id(), prescription)
        )
        logger.info("Added prescription %s for patient %s", new_prescription["id"], patient["id"])

        self._notify(
            patient["id"], "prescription", new_prescription, UPDATE_PRESCRIPTIONS, PRESCRIPTION_ADDED
        )
        return new_prescription
