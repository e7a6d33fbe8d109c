# app/schemas/auth.py
from pydantic import BaseModel, ConfigDict, Field


class RegisterIn(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=128)


class LoginIn(BaseModel):
    username: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    username: str


class UserOut(BaseModel):
    id: int
    username: str
    theme: str

    model_config = ConfigDict(from_attributes=True)


class ThemeIn(BaseModel):
    theme: str = Field(pattern="^(dark|light)$")
