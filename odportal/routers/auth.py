"""
Auth router — Register, Login, User Profile.

Rules:
- Students and staff can self-register; admins are provisioned in the users table
- Passwords are stored as bcrypt hashes
- Login returns a mock-{username} bearer token
"""

import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from odportal.core.security import (
    get_current_user, get_password_hash, issue_token, user_context, verify_password,
)
from odportal.core.database import get_supabase
from odportal.core.logging import get_logger
from odportal.schemas.auth import UserRegister, UserLogin
from odportal.utils.response import success_response

router = APIRouter(prefix="/api/auth", tags=["Authentication"])
logger = get_logger(__name__)


@router.post("/register", status_code=201)
async def register(body: UserRegister):
    if body.role == "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin accounts cannot be self-registered.",
        )

    db = get_supabase()

    for column in ("username", "email"):
        value = getattr(body, column)
        existing = db.table("users").select("id").eq(column, value).execute()
        if existing.data:
            raise HTTPException(status_code=400, detail=f"User with {column} '{value}' already exists")

    user_data = {
        "id": str(uuid.uuid4()),
        "username": body.username,
        "password_hash": get_password_hash(body.password),
        "name": body.name,
        "email": body.email,
        "role": body.role,
        "roll_number": body.roll_number,
        "department": body.department,
        "is_active": True,
    }
    result = db.table("users").insert(user_data).execute()
    created = result.data[0]
    logger.info("user.registered", user_id=created["id"], role=created["role"])

    return success_response(
        data={"token": issue_token(created["username"]), "user": user_context(created)},
        message="Registration successful",
    )


@router.post("/login")
async def login(body: UserLogin):
    db = get_supabase()
    result = (
        db.table("users")
        .select("*")
        .eq("username", body.username)
        .maybe_single()
        .execute()
    )

    if not result or not result.data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password.",
        )

    user_data = result.data
    if not verify_password(body.password, user_data.get("password_hash") or ""):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password.",
        )

    if not user_data.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated. Contact your administrator.",
        )

    return success_response(
        data={"token": issue_token(user_data["username"]), "user": user_context(user_data)},
        message="Login successful",
    )


@router.get("/me")
async def get_me(user: dict = Depends(get_current_user)):
    return success_response(data=user)
