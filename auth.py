from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from database import PatientStore
from security import verify_password

PUBLIC_USER_FIELDS = ("id", "name", "username", "role")


def authenticate_user(store: PatientStore, username: str, password: str, role: str) -> Optional[dict]:
    """Check credentials and role against the store, returning the public user fields"""
    user = store.get_user_by_username(username)
    if user and user["role"] == role and verify_password(password, user["password_hash"]):
        return {field: user[field] for field in PUBLIC_USER_FIELDS}
    return None


def create_access_token(data: dict) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Return the token claims, or None when the token is invalid or expired"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub") or not payload.get("role"):
        return None
    return payload
