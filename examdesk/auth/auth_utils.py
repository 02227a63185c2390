# examdesk/auth/auth_utils.py
from jose import jwt, JWTError
from fastapi import Depends, Header, HTTPException

from examdesk.exams import config


def _decode_jwt_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or Expired Token")


def verify_token(authorization: str = Header(None)) -> dict:
    """Bearer access token issued by the platform. Payload has id, email, is_admin."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="No token provided")

    payload = _decode_jwt_token(authorization.split(" ", 1)[1])
    if payload.get("id") is None:
        raise HTTPException(status_code=401, detail="Invalid token: missing user id")
    return payload


def require_admin(user: dict = Depends(verify_token)) -> dict:
    if user.get("is_admin") is not True:
        raise HTTPException(status_code=403, detail="Access denied: Admins only.")
    return user


def ensure_self_or_admin(user: dict, student_id: str):
    if str(user.get("id")) != str(student_id) and user.get("is_admin") is not True:
        raise HTTPException(status_code=403, detail="Not authorized")
