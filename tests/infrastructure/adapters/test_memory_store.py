from dataclasses import replace

import pytest

from mnemo.domain.errors import CardNotFound, StaleCardError
from mnemo.domain.ports import NEW_CARD_ID
from mnemo.infrastructure.adapters import InMemoryCardRepository


@pytest.fixture
def repo(make_card):
    return InMemoryCardRepository([make_card(id="a"), make_card(id="b")])


@pytest.mark.asyncio
async def test_list_preserves_insertion_order(repo, make_card):
    await repo.add(make_card(id="c"))

    assert [c.id for c in await repo.list_cards()] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_add_assigns_id_and_resets_version(repo, make_card):
    stored = await repo.add(make_card(id=NEW_CARD_ID, version=5))

    assert stored.id.startswith("card_")
    assert stored.version == 0
    assert await repo.get(stored.id) == stored


@pytest.mark.asyncio
async def test_add_rejects_existing_id(repo, make_card):
    with pytest.raises(ValueError):
        await repo.add(make_card(id="a"))


@pytest.mark.asyncio
async def test_save_bumps_version(repo):
    card = await repo.get("a")

    stored = await repo.save(replace(card, mastered=True), expected_version=0)

    assert stored.version == 1
    assert (await repo.get("a")).mastered is True


@pytest.mark.asyncio
async def test_save_detects_stale_version(repo):
    card = await repo.get("a")
    await repo.save(card, expected_version=0)

    with pytest.raises(StaleCardError) as exc_info:
        await repo.save(card, expected_version=0)

    assert exc_info.value.actual_version == 1


@pytest.mark.asyncio
async def test_save_unknown_card(repo, make_card):
    with pytest.raises(CardNotFound):
        await repo.save(make_card(id="zzz"), expected_version=0)


@pytest.mark.asyncio
async def test_delete(repo):
    assert await repo.delete("a") is True
    assert await repo.delete("a") is False
    assert await repo.get("a") is None
