"""
Contact store tests against a SQLite database
"""

import pytest

from exceptions import ContactNotFoundError
from models.contact import PRIMARY, SECONDARY
from services.contact_store import ContactStore

pytestmark = pytest.mark.asyncio


async def test_find_by_email_or_phone_uses_or_semantics(database, seed):
    by_email = await seed(email="a@x.com", minutes=1)
    by_phone = await seed(phone_number="222", minutes=2)
    await seed(email="other@x.com", phone_number="999", minutes=3)

    async with database.get_session() as session:
        store = ContactStore(session)
        found = await store.find_by_email_or_phone("a@x.com", "222")
        only_email = await store.find_by_email_or_phone("a@x.com", None)
        nothing = await store.find_by_email_or_phone(None, None)

    assert [c.id for c in found] == [by_email.id, by_phone.id]
    assert [c.id for c in only_email] == [by_email.id]
    assert nothing == []


async def test_results_are_ordered_by_creation_time(database, seed):
    newer = await seed(email="a@x.com", minutes=10)
    older = await seed(phone_number="222", minutes=1)

    async with database.get_session() as session:
        found = await ContactStore(session).find_by_email_or_phone("a@x.com", "222")

    assert [c.id for c in found] == [older.id, newer.id]


async def test_find_group_by_root(database, seed):
    primary = await seed(email="a@x.com")
    secondary = await seed(phone_number="222", linked_id=primary.id, precedence=SECONDARY, minutes=1)
    await seed(email="unrelated@x.com", minutes=2)

    async with database.get_session() as session:
        group = await ContactStore(session).find_group_by_root(primary.id)

    assert [c.id for c in group] == [primary.id, secondary.id]


async def test_find_oldest_primary_among(database, seed):
    young = await seed(email="young@x.com", minutes=5)
    old = await seed(email="old@x.com", minutes=1)
    demoted = await seed(email="demoted@x.com", linked_id=old.id, precedence=SECONDARY, minutes=0)

    async with database.get_session() as session:
        store = ContactStore(session)
        oldest = await store.find_oldest_primary_among({young.id, old.id, demoted.id})
        with pytest.raises(ContactNotFoundError):
            await store.find_oldest_primary_among({demoted.id, 12345})

    assert oldest.id == old.id


async def test_equal_created_at_prefers_smaller_id(database, seed):
    first = await seed(email="first@x.com", minutes=2)
    second = await seed(email="second@x.com", minutes=2)

    async with database.get_session() as session:
        oldest = await ContactStore(session).find_oldest_primary_among([second.id, first.id])

    assert first.id < second.id
    assert oldest.id == first.id



async def test_demotion_and_relinking(database, seed, all_contacts):
    survivor = await seed(email="a@x.com")
    loser = await seed(phone_number="222", minutes=1)
    child = await seed(email="c@x.com", linked_id=loser.id, precedence=SECONDARY, minutes=2)

    async with database.get_session() as session:
        store = ContactStore(session)
        await store.update_primary_to_secondary([survivor.id, loser.id], survivor.id)
        await store.update_secondary_links([loser.id], survivor.id)

    contacts = await all_contacts()
    assert contacts[survivor.id].link_precedence == PRIMARY
    assert contacts[survivor.id].linked_id is None
    assert contacts[loser.id].link_precedence == SECONDARY
    assert contacts[loser.id].linked_id == survivor.id
    assert contacts[child.id].linked_id == survivor.id
    assert contacts[loser.id].phone_number == "222"


async def test_insert_assigns_id_and_created_at(database):
    async with database.get_session() as session:
        store = ContactStore(session)
        first = await store.insert("a@x.com", None, None, PRIMARY)
        second = await store.insert(None, "222", first.id, SECONDARY)
        count = await store.count()

    assert second.id > first.id
    assert first.created_at is not None
    assert count == 2

