from pydantic import BaseModel, EmailStr
from datetime import datetime
from typing import List, Literal, Optional

Role = Literal["admin", "editor", "author"]


class UserRegister(BaseModel):
    # Presence and length are checked by the handler to report a single message
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[Role] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthorSummary(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class User(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserList(BaseModel):
    users: List[User]
