from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    role: Optional[str] = None
    avatar: Optional[str] = None


class ArtistRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    artistName: str
    genre: List[str] = Field(default_factory=list)
    bio: Optional[str] = None
    recordLabel: Optional[str] = None
    yearsActive: Optional[int] = None

    @field_validator("artistName")
    @classmethod
    def artist_name_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Artist name must be at least 2 characters long")
        return v

    @field_validator("genre")
    @classmethod
    def genre_required(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one genre is required")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    code: str

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class EmailRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    token: str
    newPassword: str = Field(..., min_length=6)


class CompleteProfileRequest(BaseModel):
    age: Optional[int] = Field(None, ge=1, le=120)
    location: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    hasConsentedToPrivacyPolicy: bool = False
    section: Optional[str] = None
    gender: Optional[str] = None

    @field_validator("section")
    @classmethod
    def valid_section(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ("kids", "adults"):
            raise ValueError("Section must be 'kids' or 'adults'")
        return v


class LogoutResponse(BaseModel):
    success: bool
    message: str
