"""
Response Assembler - turns an identity group into the consolidated contact
"""

from typing import Iterable, List

from models.contact import Contact
from schemas.identify import ContactResponse


def _append_unique(values: List[str], value) -> None:
    if value and value not in values:
        values.append(value)


def build_contact_response(root_id: int, contacts: Iterable[Contact]) -> ContactResponse:
    """
    Build the consolidated contact for the group rooted at root_id

    The primary's own email and phone number come first, then the other
    members' values in store order, with duplicates removed. Secondary ids
    keep store order.
    """
    contacts = list(contacts)
    primary = next((c for c in contacts if c.id == root_id), None)
    others = [c for c in contacts if c.id != root_id]

    emails: List[str] = []
    phone_numbers: List[str] = []
    if primary is not None:
        _append_unique(emails, primary.email)
        _append_unique(phone_numbers, primary.phone_number)

    for contact in others:
        _append_unique(emails, contact.email)
        _append_unique(phone_numbers, contact.phone_number)

    return ContactResponse(
        primaryContactId=root_id,
        emails=emails,
        phoneNumbers=phone_numbers,
        secondaryContactIds=[c.id for c in contacts if c.is_secondary()]
    )
