from fastapi import APIRouter, Depends
from models import RecordCreate, PrescriptionCreate
from dependencies import get_write_service
from services import PatientWriteService

router = APIRouter(prefix="/api", tags=["Medical Records"])

# async so that hub publishing happens on the event loop that owns the connections

@router.post("/add-record", status_code=201)
async def add_record(
    body: RecordCreate,
    service: PatientWriteService = Depends(get_write_service),
):
    """Add a medical record and notify subscribed dashboards"""
    return service.add_record(body.patientId, body.record)

@router.post("/add-prescription", status_code=201)
async def add_prescription(
    body: PrescriptionCreate,
    service: PatientWriteService = Depends(get_write_service),
):
    """Add a prescription and notify subscribed dashboards"""
    return service.add_prescription(body.patientId, body.prescription)
