import hashlib

def simple_hash(password: str) -> str:
    """Simple hash function for demo purposes"""
    return hashlib.sha256(f"{password}swasth_salt".encode()).hexdigest()

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Compare a plaintext password against a stored demo hash"""
    return simple_hash(plain_password) == hashed_password
