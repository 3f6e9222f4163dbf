"""
Contact model for the Identity Resolution Service
This module defines the Contact database model for storing customer
contact information and the primary/secondary linkage between records.
Links are plain parent pointers (linked_id); they are resolved through
fresh store queries rather than ORM relationships.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String

from .base import BaseModel

PRIMARY = "primary"
SECONDARY = "secondary"
LINK_PRECEDENCES = (PRIMARY, SECONDARY)

PHONE_MAX_LENGTH = 20
EMAIL_MAX_LENGTH = 255


class Contact(BaseModel):
    """
    Contact model representing one observed (email, phone number) pair

    Each contact is either 'primary' (the canonical record of its identity
    group) or 'secondary' (linked to exactly one primary). The email and
    phone number are never changed after insert; only link_precedence and
    linked_id move when groups are merged.

    Database Table: contacts
    """
    __tablename__ = "contacts"

    phone_number = Column(
        String(PHONE_MAX_LENGTH),
        nullable=True,
        index=True,
        comment="Customer phone number as supplied"
    )

    email = Column(
        String(EMAIL_MAX_LENGTH),
        nullable=True,
        index=True,
        comment="Customer email address"
    )

    linked_id = Column(
        Integer,
        ForeignKey("contacts.id"),
        nullable=True,
        index=True,
        comment="ID of the primary contact this secondary contact links to"
    )

    link_precedence = Column(
        String(10),
        nullable=False,
        default=PRIMARY,
        comment="Either 'primary' (canonical contact) or 'secondary' (linked contact)"
    )

    __table_args__ = (
        CheckConstraint(
            link_precedence.in_(LINK_PRECEDENCES),
            name="valid_link_precedence"
        ),
        CheckConstraint(
            "(phone_number IS NOT NULL) OR (email IS NOT NULL)",
            name="contact_info_required"
        ),
        CheckConstraint(
            "(link_precedence = 'primary' AND linked_id IS NULL) OR "
            "(link_precedence = 'secondary' AND linked_id IS NOT NULL)",
            name="secondary_must_have_linked_id"
        ),
        Index("ix_contact_email_phone", email, phone_number),
        Index("ix_contact_precedence_linked", link_precedence, linked_id),
    )

    def __repr__(self):
        contact_info = []
        if self.email:
            contact_info.append(f"email={self.email}")
        if self.phone_number:
            contact_info.append(f"phone={self.phone_number}")

        return (
            f"<Contact(id={self.id}, "
            f"{', '.join(contact_info)}, "
            f"precedence={self.link_precedence}, linked_id={self.linked_id})>"
        )

    def is_primary(self):
        return self.link_precedence == PRIMARY

    def is_secondary(self):
        return self.link_precedence == SECONDARY
