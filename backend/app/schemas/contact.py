from pydantic import EmailStr, Field

from app.schemas.booking import CamelModel


class ContactRequest(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = ""
    subject: str = "General Inquiry"
    message: str = Field(..., min_length=1)
