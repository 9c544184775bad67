from __future__ import annotations
from pydantic import BaseModel, EmailStr

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class AccessToken(BaseModel):
    access: str
    token_type: str = "bearer"
