"""
MarkSync Backend — Registration & Login Schemas
=================================================

What:  Request bodies and responses for POST /api/register and POST /api/login.
How:   Field names on the wire are camelCase (confirmPassword, userId) because
       the browser extension sends and reads them that way; aliases map them
       onto snake_case attributes.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Deliberately loose: something@something.tld, no whitespace
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


class RegisterRequest(BaseModel):
    """Account registration form."""
    name: str = Field(min_length=1)
    username: str = Field(min_length=1)
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    confirm_password: str = Field(min_length=1, alias="confirmPassword")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class RegisterResponse(BaseModel):
    success: bool = True


class LoginRequest(BaseModel):
    """`login` is either the username or the email address."""
    login: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    success: bool = True
    username: str
    user_id: int = Field(serialization_alias="userId")

    model_config = ConfigDict(populate_by_name=True)
