from pydantic import BaseModel, EmailStr, Field


class EmailRequest(BaseModel):
    to: list[EmailStr] | EmailStr
    subject: str = Field(min_length=1)
    html: str = Field(min_length=1)


class EmailSent(BaseModel):
    success: bool = True
