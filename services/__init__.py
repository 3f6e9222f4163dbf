"""
Business logic services for the Identity Resolution API
Contains the contact store, the root resolver/merger, and the
orchestrating identity service.
"""

from .identity_service import IdentityService, has_new_information, identity_service

__all__ = [
    "IdentityService",
    "has_new_information",
    "identity_service"
]
