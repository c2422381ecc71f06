from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class AdminLogin(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AdminSetup(CamelModel):
    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=8)
    security_answer: str = Field(min_length=1)
    setup_key: Optional[str] = None


class ForgotPassword(CamelModel):
    username: str = Field(min_length=1)
    security_answer: str
    new_password: str = Field(min_length=8)


class ResetPassword(CamelModel):
    username: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


class SuccessResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None


class AuthStatus(CamelModel):
    authenticated: bool
    needs_setup: Optional[bool] = None
