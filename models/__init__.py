"""
Database models package for the Identity Resolution Service
Contains SQLAlchemy models for contact information and identity links
"""

from .base import Base, BaseModel
from .contact import Contact, PRIMARY, SECONDARY

__all__ = ['Base', 'BaseModel', 'Contact', 'PRIMARY', 'SECONDARY']
