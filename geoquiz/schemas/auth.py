"""Pydantic schemas for signup/login."""
from pydantic import BaseModel


class CredentialsSchema(BaseModel):
    # empty defaults so missing fields surface as InvalidInput, not 422
    username: str = ""
    password: str = ""


class UserOutSchema(BaseModel):
    id: int
    username: str

    class Config:
        from_attributes = True


class TokenOutSchema(BaseModel):
    success: bool = True
    token: str
    user: UserOutSchema
