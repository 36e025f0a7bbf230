"""Authentication schemas"""
from pydantic import BaseModel, Field

from app.schemas.profile import ProfileResponse


class SignUpRequest(BaseModel):
    """Register a new account and profile"""
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    username: str = Field(..., description="3-20 letters, numbers or underscores")


class SignInRequest(BaseModel):
    """Sign in with email and password"""
    email: str
    password: str


class Token(BaseModel):
    """JWT token response"""
    access_token: str
    token_type: str = "bearer"
    user_id: str


class SignUpResponse(Token):
    """Token plus the profile created at sign-up"""
    profile: ProfileResponse

