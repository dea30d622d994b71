"""Tests for rating enrichment (left join against game_stats)."""

from catalog_gateway.services.ratings import RATING_FIELD, enrich_item, enrich_items
from conftest import FakeRatingStore, game


async def test_every_item_gets_a_rating_field():
    store = FakeRatingStore({"2": 4.2})
    items = [game(1, "A"), game(2, "B"), game(3, "C")]

    enriched = await enrich_items(items, store)

    assert len(enriched) == 3
    assert [item[RATING_FIELD] for item in enriched] == [None, 4.2, None]
    assert [item["id"] for item in enriched] == [1, 2, 3]


async def test_one_batched_lookup_with_string_ids():
    store = FakeRatingStore()
    await enrich_items([game(1, "A"), game(2, "B"), game(1, "A again")], store)
    assert store.batch_calls == [["1", "2"]]
    assert store.point_calls == []


async def test_no_rated_items_yields_nulls():
    enriched = await enrich_items([game(1, "A"), game(2, "B")], FakeRatingStore())
    assert all(RATING_FIELD in item and item[RATING_FIELD] is None for item in enriched)


async def test_empty_page_skips_lookup():
    store = FakeRatingStore()
    assert await enrich_items([], store) == []
    assert store.batch_calls == []


async def test_store_failure_degrades_to_nulls():
    store = FakeRatingStore({"1": 5.0})
    store.fail = True
    enriched = await enrich_items([game(1, "A")], store)
    assert enriched[0][RATING_FIELD] is None


async def test_items_are_copied_not_mutated():
    item = game(1, "A")
    await enrich_items([item], FakeRatingStore({"1": 3.0}))
    assert RATING_FIELD not in item


async def test_item_without_id_gets_null():
    enriched = await enrich_items([{"name": "No id"}], FakeRatingStore())
    assert enriched[0][RATING_FIELD] is None


async def test_single_item_point_lookup():
    store = FakeRatingStore({"3498": 4.7})
    enriched = await enrich_item(game(3498, "GTA V"), store)
    assert enriched[RATING_FIELD] == 4.7
    assert store.point_calls == ["3498"]


async def test_single_item_zero_rating_is_kept():
    enriched = await enrich_item(game(7, "Zero"), FakeRatingStore({"7": 0.0}))
    assert enriched[RATING_FIELD] == 0.0


async def test_single_item_failure_degrades_to_null():
    store = FakeRatingStore({"7": 3.0})
    store.fail = True
    enriched = await enrich_item(game(7, "Down"), store)
    assert enriched[RATING_FIELD] is None
