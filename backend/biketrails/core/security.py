import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from biketrails.core.config import settings

# CryptContext handles password hashing using Argon2i
# The cost parameters are fixed so every stored hash has the 97 character
# encoding the User entity accepts
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__type="i",
    argon2__memory_cost=settings.ARGON2_MEMORY_COST,
    argon2__rounds=settings.ARGON2_TIME_COST,
)


def get_password_hash(password: str) -> str:
    """Hash a password using Argon2i"""
    # argon2 generates a random salt and embeds it in the encoded hash
    return pwd_context.hash(password)


def generate_activation_token() -> str:
    """32 lowercase hex characters, emailed to the user at sign-up"""
    return secrets.token_hex(16)


def generate_xsrf_token() -> str:
    return secrets.token_hex(32)


def xsrf_tokens_match(cookie_token: Optional[str], header_token: Optional[str]) -> bool:
    """Double-submit check: the header must echo the cookie exactly"""
    if not cookie_token or not header_token:
        return False
    return secrets.compare_digest(cookie_token, header_token)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token with expiration"""
    # Copy data to avoid mutating the original dict
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(
            timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    # Add expiration claim to token payload (JWT standard 'exp' claim)
    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT token"""
    try:
        # Verify signature and expiration automatically
        # Returns None if token is invalid, expired, or tampered with
        payload = jwt.decode(token, settings.SECRET_KEY,
                             algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        return None
