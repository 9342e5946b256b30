from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from jose import JWTError, jwt
from ezyeats.config import settings
from ezyeats.core.datetime_utils import utc_now


@dataclass(frozen=True)
class Customer:
    """Authenticated customer as asserted by the identity provider's token"""
    id: str
    email: Optional[str] = None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    if expires_delta:
        expire = utc_now() + expires_delta
    else:
        expire = utc_now() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def verify_token(token: str, token_type: str = "access") -> Optional[dict]:
    """
    Verify JWT token and return payload.

    Returns:
        Token payload dict or None if invalid
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        if payload.get("type") != token_type:
            return None
        return payload
    except JWTError:
        return None


def customer_from_token(token: str) -> Optional[Customer]:
    """Customer identity carried by an access token, or None"""
    payload = verify_token(token, "access")
    if not payload or not payload.get("customer_id"):
        return None
    return Customer(id=str(payload["customer_id"]), email=payload.get("email"))
