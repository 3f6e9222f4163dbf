"""
Resolver - finds the root (primary) contact for a set of matched contacts
and merges identity groups when the matches span more than one root.

Seniority decides a merge: the earliest-created primary survives, every
other root is demoted under it, and secondaries of the demoted roots are
repointed so links never go more than one level deep.
"""

import logging
from typing import Iterable, Optional, Set

from exceptions import ContactNotFoundError, NoPrimaryFoundError
from models.contact import Contact

logger = logging.getLogger(__name__)


def get_root_id(contact: Contact) -> int:
    """A primary is its own root; a secondary's root is its linked_id"""
    return contact.id if contact.is_primary() else contact.linked_id


def collect_root_ids(contacts: Iterable[Contact]) -> Set[int]:
    return {get_root_id(contact) for contact in contacts}


async def resolve_root(store, matches) -> Optional[int]:
    """
    Return the id of the root contact that all matches belong to

    Returns None when there are no matches; the caller then creates a new
    primary. If the matches point at several roots they are merged first.

    Raises:
        NoPrimaryFoundError: none of the merge candidates is a primary
    """
    matches = list(matches)
    if not matches:
        return None

    if len(matches) == 1:
        return get_root_id(matches[0])

    root_ids = collect_root_ids(matches)
    if len(root_ids) == 1:
        return next(iter(root_ids))

    return await merge_roots(store, root_ids)


async def merge_roots(store, root_ids: Set[int]) -> int:
    """Fold every root in root_ids under the oldest primary among them"""
    try:
        survivor = await store.find_oldest_primary_among(root_ids)
    except ContactNotFoundError as e:
        raise NoPrimaryFoundError(root_ids) from e

    demoted_ids = sorted(root_ids - {survivor.id})
    await store.update_primary_to_secondary(demoted_ids, survivor.id)
    await store.update_secondary_links(demoted_ids, survivor.id)

    logger.info(f"Merged roots {demoted_ids} into primary contact {survivor.id}")
    return survivor.id
