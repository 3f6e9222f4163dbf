"""
Pydantic schemas for the /identify endpoint
Handles request validation and response serialization
Inputs are trimmed and "null" strings are treated as absent values
"""

import math
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from models.contact import EMAIL_MAX_LENGTH, PHONE_MAX_LENGTH


def _blank_to_none(v):
    if isinstance(v, str) and v.strip().lower() in ('null', ''):
        return None
    return v


class IdentifyRequest(BaseModel):
    """
    Request schema for the /identify endpoint
    Validates that at least one of email or phoneNumber is provided
    """
    email: Optional[str] = Field(
        None,
        max_length=EMAIL_MAX_LENGTH,
        description="Customer email address",
        examples=["customer@example.com", None]
    )
    phoneNumber: Optional[str] = Field(
        None,
        max_length=PHONE_MAX_LENGTH,
        description="Customer phone number",
        examples=["+1234567890", "123456", None]
    )

    @field_validator('email', mode='before')
    @classmethod
    def validate_email(cls, v) -> Optional[str]:
        """
        Trim the email and reject values that cannot be an address
        Matching is exact, so the case is kept as supplied
        """
        v = _blank_to_none(v)
        if v is None:
            return None

        if not isinstance(v, str):
            raise ValueError('Email must be a string')

        v = v.strip()
        if '@' not in v:
            raise ValueError('Invalid email format: email must contain @')
        return v

    @field_validator('phoneNumber', mode='before')
    @classmethod
    def validate_phone_number(cls, v) -> Optional[str]:
        """
        Trim the phone number; numbers are accepted and converted to strings
        """
        v = _blank_to_none(v)
        if v is None:
            return None

        if isinstance(v, bool):
            raise ValueError('Phone number must be a string or number')
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError('Phone number must be a finite number')
        if isinstance(v, (int, float)):
            v = str(int(v))  # Drop a float's decimal part

        if not isinstance(v, str):
            raise ValueError('Phone number must be a string or number')

        v = v.strip()
        if not re.search(r'\d', v):
            raise ValueError('Phone number must contain at least one digit')

        # Stored exactly as provided (after trimming)
        return v

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        if not self.email and not self.phoneNumber:
            raise ValueError('Either email or phoneNumber must be provided')
        return self

    class Config:
        json_schema_extra = {
            "examples": [
                {
                    "email": "customer@example.com",
                    "phoneNumber": "123456"
                },
                {
                    "email": "customer@example.com",
                    "phoneNumber": None
                },
                {
                    "email": None,
                    "phoneNumber": "123456"
                }
            ]
        }


class ContactResponse(BaseModel):
    """
    Consolidated contact information for one identity
    """
    primaryContactId: int = Field(
        description="ID of the primary contact"
    )
    emails: List[str] = Field(
        default_factory=list,
        description="All email addresses in the identity, the primary's first",
        examples=[["customer@example.com", "customer2@example.com"]]
    )
    phoneNumbers: List[str] = Field(
        default_factory=list,
        description="All phone numbers in the identity, the primary's first",
        examples=[["123456", "654321"]]
    )
    secondaryContactIds: List[int] = Field(
        default_factory=list,
        description="IDs of all secondary contacts linked to the primary",
        examples=[[2, 3, 4]]
    )


class IdentifyResponse(BaseModel):
    """
    Response schema for the /identify endpoint
    """
    contact: ContactResponse = Field(
        description="Consolidated contact information"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "contact": {
                    "primaryContactId": 1,
                    "emails": ["customer@example.com", "customer2@example.com"],
                    "phoneNumbers": ["123456"],
                    "secondaryContactIds": [2, 3]
                }
            }
        }


class ErrorResponse(BaseModel):
    """
    Error response schema for API errors
    """
    error: str = Field(
        description="Error type or category"
    )
    message: str = Field(
        description="Human-readable error message"
    )
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error details"
    )

    class Config:
        json_schema_extra = {
            "examples": [
                {
                    "error": "ValidationError",
                    "message": "Request validation failed",
                    "details": {"errors": [{"field": "body", "message": "Either email or phoneNumber must be provided"}]}
                },
                {
                    "error": "InternalServerError",
                    "message": "Unable to process identity resolution request"
                }
            ]
        }
