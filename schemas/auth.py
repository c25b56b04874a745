from typing import Optional

from models import Role
from schemas.common import CamelModel


class RegisterRequest(CamelModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(CamelModel):
    email: str = ""
    password: str = ""


class AuthResponse(CamelModel):
    id: int
    name: str
    email: str
    role: Role
    email_verified: bool
    token: str


class MeResponse(CamelModel):
    id: int
    name: str
    email: str
    role: Role
    age: Optional[str] = None
    gender: Optional[str] = None
    selected_avatar: Optional[str] = None
    email_verified: bool
