"""
Identity Service - orchestrates identity resolution for one request
Looks up matching contacts, resolves (and if needed merges) their root,
folds new information into the group and builds the consolidated response
"""

import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from config import settings
from database import DatabaseManager, db_manager
from exceptions import PersistenceError, ResolutionConflictError
from models.contact import Contact, PRIMARY, SECONDARY
from schemas.identify import ContactResponse, IdentifyRequest, IdentifyResponse
from services.assembler import build_contact_response
from services.contact_store import ContactStore
from services.locks import IdentifierLocks, identifier_lock_keys, root_lock_keys
from services.resolver import collect_root_ids, resolve_root

logger = logging.getLogger(__name__)


def has_new_information(
    group: Iterable[Contact],
    email: Optional[str],
    phone_number: Optional[str]
) -> bool:
    """
    True if a supplied email or phone number appears nowhere in the group
    Values that were not supplied never count as new.
    """
    group = list(group)
    known_emails = {c.email for c in group if c.email}
    known_phones = {c.phone_number for c in group if c.phone_number}

    has_new_email = bool(email) and email not in known_emails
    has_new_phone = bool(phone_number) and phone_number not in known_phones
    return has_new_email or has_new_phone


class IdentityService:
    """
    Core service for identity resolution

    A request first holds the locks for its own email and phone number.
    It then reads which roots its matches belong to, locks those roots and
    opens the transaction that reads the matches again. If a concurrent
    merge moved them in between, the transaction ends without writes and
    the request starts over. Merge, re-lookup and insert therefore run
    with every affected group locked until the transaction commits.
    """

    def __init__(self, database: Optional[DatabaseManager] = None, max_attempts: Optional[int] = None):
        self.db_manager = database or db_manager
        self.max_attempts = max_attempts or settings.RESOLVE_MAX_ATTEMPTS
        self.locks = IdentifierLocks()

    async def identify_contact(self, request: IdentifyRequest) -> IdentifyResponse:
        """
        Main orchestration method for identity resolution

        Algorithm:
        1. Find existing contacts matching email or phone
        2. Lock their roots and confirm the matches still point at them
        3. Resolve the root, merging groups that the request bridges
        4. If nothing matched -> create a new primary contact
        5. Load the whole group; add a secondary if the request carries new info
        6. Return consolidated contact information
        """
        email, phone_number = request.email, request.phoneNumber
        keys = identifier_lock_keys(email, phone_number)

        async with self.locks.hold(keys):
            for attempt in range(1, self.max_attempts + 1):
                try:
                    contact = await self._attempt(keys, email, phone_number)
                except SQLAlchemyError as e:
                    raise PersistenceError(f"Contact store failure: {e}") from e

                if contact is not None:
                    return IdentifyResponse(contact=contact)
                logger.info(f"Matched roots moved during attempt {attempt} for email={email}, phone={phone_number}; retrying")

        raise ResolutionConflictError(
            f"Roots for email={email}, phone={phone_number} kept changing after {self.max_attempts} attempts"
        )

    async def _matched_root_ids(self, email, phone_number) -> Set[int]:
        async with self.db_manager.get_session() as session:
            matches = await ContactStore(session).find_by_email_or_phone(email, phone_number)
            return collect_root_ids(matches)

    async def _attempt(self, keys: List[str], email, phone_number) -> Optional[ContactResponse]:
        """One resolution attempt; None means the matched roots moved before they were locked"""
        root_ids = await self._matched_root_ids(email, phone_number)
        root_keys = root_lock_keys(root_ids)

        # Root locks stay held until the transaction below has committed
        async with self.locks.hold(root_keys):
            async with self.db_manager.get_session() as session:
                store = ContactStore(session)
                await store.lock_keys(keys + root_keys)

                matches = await store.find_by_email_or_phone(email, phone_number)
                if collect_root_ids(matches) != root_ids:
                    return None

                root_id = await resolve_root(store, matches)

                if root_id is None:
                    primary = await self._add_contact(store, email, phone_number, None, PRIMARY)
                    root_id = primary.id

                group = await store.find_group_by_root(root_id)

                if has_new_information(group, email, phone_number):
                    group.append(
                        await self._add_contact(store, email, phone_number, root_id, SECONDARY)
                    )

        return build_contact_response(root_id, group)

    async def _add_contact(
        self,
        store: ContactStore,
        email: Optional[str],
        phone_number: Optional[str],
        linked_id: Optional[int],
        precedence: str
    ) -> Contact:
        contact = await store.insert(email, phone_number, linked_id, precedence)
        logger.info(f"Created {precedence} contact {contact.id} (linked_id={linked_id})")
        return contact


# Global service instance
identity_service = IdentityService()
