from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from database import InMemoryStore, default_users, init_database
from main import create_app
from realtime.hub import Hub
from security import simple_hash
from services import PatientWriteService

FIXED_NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return init_database()


@pytest.fixture
def two_patient_store():
    users = default_users() + [
        {
            "id": "ABHA5678",
            "username": "anita_sbx",
            "password_hash": simple_hash("anita!"),
            "name": "Anita Rao",
            "dob": "1988-01-12",
            "gender": "F",
            "role": "patient",
        }
    ]
    return InMemoryStore(users)


@pytest.fixture
def hub():
    return Hub()


@pytest.fixture
def service(store, hub):
    return PatientWriteService(store, hub, clock=lambda: FIXED_NOW)


@pytest.fixture
def app(store, hub):
    return create_app(store=store, hub=hub)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
