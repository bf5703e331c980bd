from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from shared.schemas import Address


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    username: str = ""
    phone_number: str = ""


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    session_id: str # cart session opened by this login


class LogoutRequest(BaseModel):
    session_id: str


class UserResponse(BaseModel):
    id: str
    email: str
    username: str
    phone_number: str
    shipping_address: Optional[Address] = None
    user_rating: float
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
