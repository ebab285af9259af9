from fastapi import APIRouter, Depends
from models import PatientProfile, PatientResponse
from database import PatientStore
from dependencies import get_store
from exceptions import NotFoundError

router = APIRouter(prefix="/api", tags=["Patients"])

@router.get("/patient/{patient_id}", response_model=PatientResponse)
def get_patient(patient_id: str, store: PatientStore = Depends(get_store)):
    """Profile, records and prescriptions by patient id or username"""
    patient = store.get_patient(patient_id)
    if not patient:
        raise NotFoundError("Patient not found")

    return PatientResponse(
        profile=PatientProfile(**patient),
        records=patient.get("records", []),
        prescriptions=patient.get("prescriptions", []),
    )
