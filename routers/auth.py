import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field, StringConstraints
from pymongo.database import Database

from database import create_document, get_db, sanitize, to_obj_id, update_document
from responses import envelope
from schemas import Address, Role, User as UserSchema
from security import create_access_token, get_current_user, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

PROFILE_UPDATES = (
    "first_name",
    "last_name",
    "phone",
    "address",
    "avatar",
    "bio",
    "expertise",
    "hourly_rate",
    "experience",
)


# Request Models
class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: Name
    last_name: Name
    role: Role
    phone: Optional[str] = None
    expertise: Optional[List[str]] = None
    hourly_rate: Optional[float] = Field(None, ge=0)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(BaseModel):
    first_name: Optional[Name] = None
    last_name: Optional[Name] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    avatar: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    expertise: Optional[List[str]] = None
    hourly_rate: Optional[float] = Field(None, ge=0)
    experience: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


def normalize_email(email: str) -> str:
    return email.strip().lower()


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Database = Depends(get_db)):
    email = normalize_email(payload.email)
    if db["user"].find_one({"email": email}):
        raise HTTPException(status_code=400, detail="Email already registered.")
    helper_fields = {}
    if payload.role == "helper":
        helper_fields = {"expertise": payload.expertise or [], "hourly_rate": payload.hourly_rate}
    user_doc = create_document(
        db,
        "user",
        UserSchema(
            email=email,
            password_hash=hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            role=payload.role,
            phone=payload.phone,
            **helper_fields,
        ),
    )
    uid = str(user_doc["_id"])
    logger.info("Registered %s user %s", payload.role, uid)
    token = create_access_token(uid, payload.role)
    return envelope({"user": sanitize(user_doc), "token": token}, "Registration successful!")


@router.post("/login")
def login(payload: LoginRequest, db: Database = Depends(get_db)):
    user = db["user"].find_one({"email": normalize_email(payload.email)})
    if not user:
        logger.warning("Login failed for unknown email")
        raise HTTPException(status_code=401, detail="Invalid email or password.")
    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account is deactivated. Please contact support.")
    if not verify_password(payload.password, user.get("password_hash", "")):
        logger.warning("Login failed for user %s", user["_id"])
        raise HTTPException(status_code=401, detail="Invalid email or password.")
    token = create_access_token(str(user["_id"]), user["role"])
    return envelope({"user": sanitize(user), "token": token, "role": user["role"]}, "Login successful!")


@router.get("/profile")
def get_profile(current_user=Depends(get_current_user)):
    return envelope(current_user)


@router.put("/profile")
def update_profile(payload: ProfileUpdateRequest, current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    updates = payload.model_dump(exclude_unset=True, include=set(PROFILE_UPDATES))
    # Explicit nulls clear optional fields; names are required on the user.
    for key in ("first_name", "last_name"):
        if key in updates and updates[key] is None:
            del updates[key]
    user = update_document(db, "user", to_obj_id(current_user["id"]), updates)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    return envelope(sanitize(user), "Profile updated successfully!")


@router.put("/change-password")
def change_password(payload: ChangePasswordRequest, current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    user = db["user"].find_one({"_id": to_obj_id(current_user["id"])})
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    if not verify_password(payload.current_password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Current password is incorrect.")
    update_document(db, "user", user["_id"], {"password_hash": hash_password(payload.new_password)})
    return envelope(message="Password changed successfully!")
