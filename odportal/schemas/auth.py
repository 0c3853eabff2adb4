"""
Pydantic schemas for authentication and user management.
"""

from pydantic import BaseModel, Field
from typing import Optional, Literal


class UserRegister(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    email: str
    role: Literal["student", "staff", "admin"]
    roll_number: Optional[str] = None  # students
    department: Optional[str] = None


class UserLogin(BaseModel):
    username: str
    password: str


class UserProfile(BaseModel):
    id: str
    username: str
    email: str
    name: str
    role: str
    roll_number: Optional[str] = None
    department: Optional[str] = None
    is_active: bool = True
