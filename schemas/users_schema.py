from sqlmodel import SQLModel, Field
from pydantic import EmailStr
from typing import Optional
from datetime import datetime

from models.enums import UserRole


class UserBase(SQLModel):
    name: str = Field(max_length=100)
    username: str = Field(max_length=50)
    email: Optional[EmailStr] = None
    role: UserRole = UserRole.WAITER

class UserLogin(SQLModel):
    username: str = Field(max_length=50)
    password: str = Field(max_length=100)

class UserCreate(UserBase):
    password: str = Field(min_length=6, max_length=100)

class UserUpdate(SQLModel):
    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    active: Optional[bool] = None

class UserRead(UserBase):
    id: int
    active: bool
    created_at: datetime
    updated_at: datetime
    last_connection: Optional[datetime] = None

class PasswordUpdate(SQLModel):
    password: str = Field(min_length=6, max_length=100)
