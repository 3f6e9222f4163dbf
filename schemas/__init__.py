"""
Pydantic schemas for the Identity Resolution API
Contains request/response models for the API endpoints
"""

from .identify import (
    IdentifyRequest,
    ContactResponse,
    IdentifyResponse,
    ErrorResponse
)

__all__ = [
    "IdentifyRequest",
    "ContactResponse",
    "IdentifyResponse",
    "ErrorResponse"
]
