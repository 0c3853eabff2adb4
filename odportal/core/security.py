"""
Security module — Mock bearer-token auth + password hashing + role guard.

Auth Flow:
1. User logs in with username/password → gets a "mock-<username>" token
2. Frontend sends the token as a Bearer credential
3. Backend fetches the user profile from Supabase by username
4. Backend checks the user is active
5. Backend injects: user_id, role, name, roll_number

Only users present in the users table can authenticate.
"""

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from odportal.core.config import settings
from odportal.core.database import get_supabase

security_scheme = HTTPBearer()

TOKEN_PREFIX = "mock-"
ROLES = ("student", "staff", "admin")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # malformed hash in the users table
        return False


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def issue_token(username: str) -> str:
    return f"{TOKEN_PREFIX}{username}"


def user_context(user_data: dict) -> dict:
    """Shape a users row into the dict injected into routers."""
    return {
        "user_id": user_data["id"],
        "username": user_data["username"],
        "email": user_data.get("email", ""),
        "name": user_data["name"],
        "role": user_data["role"],
        "roll_number": user_data.get("roll_number"),
        "department": user_data.get("department"),
    }


# ---------------------------------------------------------------------------
# Token verification — the core auth function
# ---------------------------------------------------------------------------
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
) -> dict:
    """
    Validate the Bearer token and return user dict.
    Enforces: registered user, is_active user.
    """
    token = credentials.credentials

    if settings.AUTH_MODE != "mock" or not token.startswith(TOKEN_PREFIX):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token.",
        )

    username = token[len(TOKEN_PREFIX):]
    db = get_supabase()
    result = (
        db.table("users")
        .select("*")
        .eq("username", username)
        .maybe_single()
        .execute()
    )

    if not result or not result.data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token. Only registered users can login.",
        )

    user_data = result.data
    if not user_data.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated. Contact your administrator.",
        )

    return user_context(user_data)


# ---------------------------------------------------------------------------
# Role guard dependency
# ---------------------------------------------------------------------------
def require_role(allowed_roles: list[str]):
    """
    Usage:
        @router.get("/admin-only")
        async def endpoint(user=Depends(require_role(["admin"]))):
    """

    async def role_checker(
        user: dict = Depends(get_current_user),
    ) -> dict:
        if user["role"] not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user['role']}' not authorized. Required: {allowed_roles}",
            )
        return user

    return role_checker
