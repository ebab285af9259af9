from fastapi import APIRouter, Depends
from models import LoginRequest, LoginResponse, UserOut
from auth import authenticate_user, create_access_token
from database import PatientStore
from dependencies import get_store
from exceptions import AuthError, ValidationError

router = APIRouter(prefix="/api", tags=["Authentication"])

@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, store: PatientStore = Depends(get_store)):
    """Check demo credentials for a dashboard role"""
    if not request.role or not request.username or not request.password:
        raise ValidationError("Role, username, and password are required")

    user = authenticate_user(store, request.username, request.password, request.role)
    if not user:
        raise AuthError("Invalid credentials")

    token = create_access_token(data={"sub": user["id"], "role": user["role"]})
    return LoginResponse(user=UserOut(**user), token=token)
