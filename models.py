from pydantic import BaseModel
from typing import Any, Dict, List, Optional, Union

class LoginRequest(BaseModel):
    role: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

class UserOut(BaseModel):
    id: str
    name: str
    username: str
    role: str

class LoginResponse(BaseModel):
    success: bool = True
    user: UserOut
    token: str

class PatientProfile(BaseModel):
    id: str
    name: str
    username: str
    dob: Optional[str] = None
    gender: Optional[str] = None

class PatientResponse(BaseModel):
    profile: PatientProfile
    records: List[Dict[str, Any]]
    prescriptions: List[Dict[str, Any]]

class RecordCreate(BaseModel):
    patientId: Optional[Union[str, int]] = None
    record: Optional[Dict[str, Any]] = None

class PrescriptionCreate(BaseModel):
    patientId: Optional[Union[str, int]] = None
    prescription: Optional[Dict[str, Any]] = None
