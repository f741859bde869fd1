"""Pydantic schemas for office staff login and profile endpoints.

Learn: Request bodies keep the frontend's camelCase keys (fullName,
contactNo, ...) via aliases; responses use the snake_case keys the UI
already consumes.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ─── Login ──────────────────────────────────────────────

class LoginRequest(BaseModel):
    # Optional so a missing field is a 400 with our message, not a 422.
    username: Optional[str] = None
    password: Optional[str] = None


class LoginUser(BaseModel):
    id: int
    staff_id: int
    username: str
    department: str


class LoginResponse(BaseModel):
    message: str
    user: LoginUser


class MessageResponse(BaseModel):
    message: str


# ─── Profile ────────────────────────────────────────────

class StaffProfileRead(BaseModel):
    id: int
    username: str
    email: str
    department: str
    full_name: Optional[str] = None
    age: Optional[int] = None
    sex: Optional[str] = None
    contact_no: Optional[str] = None

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    user: StaffProfileRead


class ProfileUpdate(BaseModel):
    """Partial update — every field optional, falsy means "unchanged"."""

    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = Field(None, alias="fullName")
    age: Optional[int] = None
    sex: Optional[str] = None
    contact_no: Optional[str] = Field(None, alias="contactNo")
    current_password: Optional[str] = Field(None, alias="currentPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")

    @field_validator("*", mode="before")
    @classmethod
    def falsy_means_unchanged(cls, value):
        # "", 0, False and null are "not supplied", before any type check.
        return value if value else None

    @property
    def wants_password_change(self) -> bool:
        return bool(self.current_password and self.new_password)

    def account_fields(self) -> dict:
        return {"username": self.username, "email": self.email}

    def profile_fields(self) -> dict:
        return {
            "full_name": self.full_name,
            "age": self.age,
            "sex": self.sex,
            "contact_no": self.contact_no,
        }
