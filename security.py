import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database

from config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from database import get_db, sanitize, to_obj_id

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": user_id, "role": role, "exp": expire}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])


def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Database = Depends(get_db)) -> dict:
    """Resolve the bearer token to an active user, re-fetched on every request."""
    if not token:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")
    credentials_exception = HTTPException(status_code=401, detail="Invalid token or user not found.")
    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        logger.warning("Rejected bearer token")
        raise credentials_exception
    try:
        oid = to_obj_id(user_id)
    except HTTPException:
        raise credentials_exception
    user = db["user"].find_one({"_id": oid})
    if not user or not user.get("is_active", True):
        raise credentials_exception
    return sanitize(user)


def require_role(*roles: str):
    def role_dep(current_user=Depends(get_current_user)):
        if current_user.get("role") not in roles:
            raise HTTPException(status_code=403, detail="Access denied. Insufficient permissions.")
        return current_user
    return role_dep
