import copy
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from security import simple_hash

logger = logging.getLogger(__name__)

RECORD_PREFIX = "R"
PRESCRIPTION_PREFIX = "PR"


def format_display_id(prefix: str, number: int) -> str:
    """Build a display identifier such as ``R002`` or ``PR010``"""
    return f"{prefix}{number:03d}"


def parse_display_id(prefix: str, display_id: str) -> int:
    """Numeric part of a display identifier, 0 when it does not parse"""
    if not isinstance(display_id, str) or not display_id.startswith(prefix):
        return 0
    try:
        return int(display_id[len(prefix):])
    except ValueError:
        return 0


class PatientStore(ABC):
    """Storage seen by the auth layer and the write API.

    Implementations own patient state exclusively: callers get copies and
    mutate only through the ``append_*`` operations.
    """

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[dict]:
        ...

    @abstractmethod
    def get_patient(self, id_or_username: str) -> Optional[dict]:
        ...

    @abstractmethod
    def next_record_id(self) -> str:
        ...

    @abstractmethod
    def next_prescription_id(self) -> str:
        ...

    @abstractmethod
    def append_record(self, patient_id: str, record: dict) -> dict:
        ...

    @abstractmethod
    def append_prescription(self, patient_id: str, prescription: dict) -> dict:
        ...


class InMemoryStore(PatientStore):
    """Mock database held in process memory.

    Display identifiers come from two global counters seeded from the highest
    identifiers present in the seed data, and moved past any id appended
    directly, so they keep increasing across all patients for the lifetime of
    the process.
    """

    def __init__(self, users: List[dict]):
        self._users = [copy.deepcopy(user) for user in users]
        for user in self._users:
            if user["role"] == "patient":
                user.setdefault("records", [])
                user.setdefault("prescriptions", [])

        self._last_record = max(
            (parse_display_id(RECORD_PREFIX, r["id"]) for p in self._patients() for r in p["records"]),
            default=0,
        )
        self._last_prescription = max(
            (parse_display_id(PRESCRIPTION_PREFIX, r["id"]) for p in self._patients() for r in p["prescriptions"]),
            default=0,
        )

    def _patients(self):
        return [user for user in self._users if user["role"] == "patient"]

    def _find_patient(self, id_or_username: str) -> Optional[dict]:
        for patient in self._patients():
            if patient["id"] == id_or_username or patient["username"] == id_or_username:
                return patient
        return None

    def get_user_by_username(self, username: str) -> Optional[dict]:
        """Get user by username"""
        for user in self._users:
            if user["username"] == username:
                return copy.deepcopy(user)
        return None

    def get_patient(self, id_or_username: str) -> Optional[dict]:
        """Get a patient by patient id or, failing that, by username"""
        patient = self._find_patient(id_or_username)
        return copy.deepcopy(patient) if patient else None

    def get_all_patients(self) -> List[dict]:
        return [copy.deepcopy(patient) for patient in self._patients()]

    def next_record_id(self) -> str:
        self._last_record += 1
        return format_display_id(RECORD_PREFIX, self._last_record)

    def next_prescription_id(self) -> str:
        self._last_prescription += 1
        return format_display_id(PRESCRIPTION_PREFIX, self._last_prescription)

    def append_record(self, patient_id: str, record: dict) -> dict:
        """Append a record to a patient, returning a copy of what was stored"""
        patient = self._find_patient(patient_id)
        if patient is None:
            raise KeyError(patient_id)
        patient["records"].append(copy.deepcopy(record))
        self._last_record = max(self._last_record, parse_display_id(RECORD_PREFIX, record.get("id")))
        logger.debug("Stored record %s for %s", record.get("id"), patient["id"])
        return copy.deepcopy(record)

    def append_prescription(self, patient_id: str, prescription: dict) -> dict:
        """Append a prescription to a patient, returning a copy of what was stored"""
        patient = self._find_patient(patient_id)
        if patient is None:
            raise KeyError(patient_id)
        patient["prescriptions"].append(copy.deepcopy(prescription))
        self._last_prescription = max(
            self._last_prescription, parse_display_id(PRESCRIPTION_PREFIX, prescription.get("id"))
        )
        logger.debug("Stored prescription %s for %s", prescription.get("id"), patient["id"])
        return copy.deepcopy(prescription)


def default_users() -> List[dict]:
    """Demo accounts and patient data the portal starts with"""
    return [
        {
            "id": "D001",
            "username": "drmehta",
            "password_hash": simple_hash("docpass123"),
            "name": "Dr. Mehta",
            "role": "doctor",
        },
        {
            "id": "PH001",
            "username": "pharma1",
            "password_hash": simple_hash("pharmapass"),
            "name": "Pharma One",
            "role": "pharmacist",
        },
        {
            "id": "ABHA1234",
            "username": "vishwakarma_4294@sbx",
            "password_hash": simple_hash("saurabh4294!"),
            "name": "Saurabh Vishwakarma",
            "dob": "1999-04-29",
            "gender": "M",
            "role": "patient",
            "records": [
                {
                    "id": "R001",
                    "doctorId": "D001",
                    "note": "Initial checkup - healthy",
                    "date": "2025-09-10",
                },
            ],
            "prescriptions": [
                {
                    "id": "PR001",
                    "doctorId": "D001",
                    "medicines": [{"name": "Paracetamol", "dose": "500mg", "qty": "10"}],
                    "date": "2025-09-10",
                },
            ],
        },
    ]


def init_database() -> InMemoryStore:
    """Create a store seeded with the default demo users"""
    store = InMemoryStore(default_users())
    logger.info("Mock store initialised with %d patient(s)", len(store.get_all_patients()))
    return store
