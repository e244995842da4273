import pytest
import pytest_asyncio
from pydantic import ValidationError

from verisponsor.schemas.user import Identity, User


SPONSOR = Identity(id="u1", role="sponsor", is_verified=True)


@pytest_asyncio.fixture
async def directory(store):
    for user in [
        User(id="u2", name="Gaming Legends", email="youtuber@example.com", role="youtuber", is_verified=False),
        User(id="u3", name="Travel Vlogger", email="travelvlog@example.com", role="youtuber", is_verified=True),
        User(id="u4", name="Cooking Corner", email="cook@example.com", role="youtuber", is_verified=False),
        User(id="u5", name="Acme Gaming", email="acme@example.com", role="sponsor", is_verified=True),
    ]:
        await store.users.upsert_user(user)
    return store.users


@pytest.mark.asyncio
async def test_discover_lists_the_other_role_by_name(user_service, directory):
    users = await user_service.discover(SPONSOR)
    assert [u.id for u in users] == ["u4", "u2", "u3"]

    creator = Identity(id="u2", role="youtuber")
    assert [u.id for u in await user_service.discover(creator)] == ["u5"]


@pytest.mark.asyncio
async def test_discover_matches_name_case_insensitively(user_service, directory):
    assert [u.id for u in await user_service.discover(SPONSOR, query="  gaming ")] == ["u2"]
    assert await user_service.discover(SPONSOR, query="nobody") == []


@pytest.mark.asyncio
async def test_discover_sorts_verified_first(user_service, directory):
    users = await user_service.discover(SPONSOR, sort="verified")
    assert [u.id for u in users] == ["u3", "u4", "u2"]


@pytest.mark.parametrize("user_id", ["a.b@example.com", "$x", ""])
def test_identity_rejects_ids_unusable_as_counter_keys(user_id):
    with pytest.raises(ValidationError):
        Identity(id=user_id, role="sponsor")
