"""
Contact Store - query/update contract over the contacts table
Every read goes back to the database and refreshes rows already held by
the session, so linked_id pointers are never followed through stale objects.
Results are always ordered by created_at, then id.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, or_, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from exceptions import ContactNotFoundError
from models.base import utcnow
from models.contact import Contact, PRIMARY, SECONDARY

logger = logging.getLogger(__name__)


class ContactStore:
    """
    Store operations bound to one AsyncSession (one transaction)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _ordered(self):
        return (
            select(Contact)
            .order_by(Contact.created_at.asc(), Contact.id.asc())
            .execution_options(populate_existing=True)
        )

    async def _all(self, query) -> List[Contact]:
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def lock_keys(self, keys: Iterable[str]):
        """
        Take transaction-scoped advisory locks on the given lock keys
        Only PostgreSQL supports this; other dialects rely on process-local locks.
        """
        if self.session.bind.dialect.name != "postgresql":
            return
        for key in sorted(set(keys)):
            await self.session.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key}
            )

    async def find_by_email_or_phone(
        self,
        email: Optional[str],
        phone_number: Optional[str]
    ) -> List[Contact]:
        """
        Find every contact whose email OR phone number equals the given value
        Absent values are left out of the match clause.
        """
        conditions = []
        if email:
            conditions.append(Contact.email == email)
        if phone_number:
            conditions.append(Contact.phone_number == phone_number)

        if not conditions:
            return []

        contacts = await self._all(self._ordered().where(or_(*conditions)))
        logger.debug(f"Lookup email={email} phone={phone_number} matched ids {[c.id for c in contacts]}")
        return contacts

    async def find_group_by_root(self, root_id: int) -> List[Contact]:
        """All contacts with id = root_id or linked_id = root_id"""
        return await self._all(
            self._ordered().where(or_(Contact.id == root_id, Contact.linked_id == root_id))
        )

    async def find_oldest_primary_among(self, ids: Iterable[int]) -> Contact:
        """
        Earliest-created primary among ids (ties go to the smaller id)
        Raises ContactNotFoundError if none of the ids is a primary.
        """
        ids = list(ids)
        result = await self.session.execute(
            self._ordered()
            .where(Contact.id.in_(ids), Contact.link_precedence == PRIMARY)
            .limit(1)
        )
        contact = result.scalars().first()
        if contact is None:
            raise ContactNotFoundError(f"No primary contact among ids {sorted(ids)}")
        return contact

    async def update_primary_to_secondary(self, ids: Iterable[int], survivor_id: int):
        """Demote the primaries in ids (never the survivor) to secondaries of survivor_id"""
        ids = [contact_id for contact_id in ids if contact_id != survivor_id]
        if not ids:
            return
        await self.session.execute(
            update(Contact)
            .where(Contact.id.in_(ids), Contact.link_precedence == PRIMARY)
            .values(link_precedence=SECONDARY, linked_id=survivor_id, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )

    async def update_secondary_links(self, from_ids: Iterable[int], to_id: int):
        """Repoint secondaries linked to any of from_ids at to_id"""
        from_ids = list(from_ids)
        if not from_ids:
            return
        await self.session.execute(
            update(Contact)
            .where(Contact.link_precedence == SECONDARY, Contact.linked_id.in_(from_ids))
            .values(linked_id=to_id, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )

    async def insert(
        self,
        email: Optional[str],
        phone_number: Optional[str],
        linked_id: Optional[int],
        link_precedence: str
    ) -> Contact:
        """Insert a contact; the flush assigns id and created_at"""
        contact = Contact(
            email=email,
            phone_number=phone_number,
            linked_id=linked_id,
            link_precedence=link_precedence,
        )
        self.session.add(contact)
        await self.session.flush()
        return contact

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Contact))
        return result.scalar_one()
