from fastapi.requests import HTTPConnection

from database import PatientStore
from realtime.hub import Hub
from services import PatientWriteService


def get_store(connection: HTTPConnection) -> PatientStore:
    """Store created for this app instance"""
    return connection.app.state.store


def get_hub(connection: HTTPConnection) -> Hub:
    """Notification hub created for this app instance"""
    return connection.app.state.hub


def get_write_service(connection: HTTPConnection) -> PatientWriteService:
    return connection.app.state.write_service
