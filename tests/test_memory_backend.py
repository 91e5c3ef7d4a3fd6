"""
Memory Backend Tests

🧠 Reference storage semantics: record isolation, conflicts, filtering,
ordering with the key tiebreaker, keyset positions and metrics.
"""

import pytest

from fieldbook.core import Conflict, KeysetPosition, QueryOperator, QueryOptions, SortCriteria, SortDirection
from fieldbook.persistence import MemoryBackend

ROWS = {
    "k1": {"identifier": "k1", "rank": 2, "label": "bravo"},
    "k2": {"identifier": "k2", "rank": 1, "label": "alpha"},
    "k3": {"identifier": "k3", "rank": 2, "label": None},
    "k4": {"identifier": "k4", "rank": None, "label": "delta"},
}


async def seeded() -> MemoryBackend:
    backend = MemoryBackend()
    await backend.initialize()
    for key, record in ROWS.items():
        await backend.save("rows", key, record)
    return backend


def keys(records):
    return [record["identifier"] for record in records]


class TestMemoryBackendStorage:
    @pytest.mark.asyncio
    async def test_save_and_load_copy_records(self, memory_backend):
        record = {"identifier": "k1", "tags": "a"}
        await memory_backend.save("rows", "k1", record)
        record["tags"] = "changed"

        loaded = await memory_backend.load("rows", "k1")
        assert loaded == {"identifier": "k1", "tags": "a"}
        loaded["tags"] = "changed again"
        assert (await memory_backend.load("rows", "k1"))["tags"] == "a"

    @pytest.mark.asyncio
    async def test_nested_values_are_not_shared(self, memory_backend):
        record = {"identifier": "k1", "tags": ["a"], "address": {"city": "Osaka"}}
        await memory_backend.save("rows", "k1", record)
        record["tags"].append("mutated")
        record["address"]["city"] = "Kobe"

        loaded = await memory_backend.load("rows", "k1")
        assert loaded == {"identifier": "k1", "tags": ["a"], "address": {"city": "Osaka"}}
        loaded["tags"].append("again")
        (listed,) = await memory_backend.query("rows", QueryOptions())
        listed["address"]["city"] = "Nara"
        assert await memory_backend.load("rows", "k1") == {
            "identifier": "k1", "tags": ["a"], "address": {"city": "Osaka"},
        }

    @pytest.mark.asyncio
    async def test_replace_only_overwrites_existing_records(self, memory_backend):
        assert await memory_backend.replace("rows", "k1", {"identifier": "k1", "rank": 1}) is False
        assert not await memory_backend.exists("rows", "k1")

        await memory_backend.save("rows", "k1", {"identifier": "k1", "rank": 1})
        assert await memory_backend.replace("rows", "k1", {"identifier": "k1", "rank": 2}) is True
        assert (await memory_backend.load("rows", "k1"))["rank"] == 2

    @pytest.mark.asyncio
    async def test_save_replaces_existing_record(self, memory_backend):
        await memory_backend.save("rows", "k1", {"identifier": "k1", "rank": 1})
        await memory_backend.save("rows", "k1", {"identifier": "k1", "rank": 2})
        assert (await memory_backend.load("rows", "k1"))["rank"] == 2
        assert await memory_backend.count("rows") == 1

    @pytest.mark.asyncio
    async def test_insert_conflicts_on_existing_key(self, memory_backend):
        await memory_backend.insert("rows", "k1", {"identifier": "k1"})
        with pytest.raises(Conflict):
            await memory_backend.insert("rows", "k1", {"identifier": "k1"})

    @pytest.mark.asyncio
    async def test_delete_reports_whether_a_record_was_removed(self, memory_backend):
        await memory_backend.save("rows", "k1", {"identifier": "k1"})
        assert await memory_backend.delete("rows", "k1") is True
        assert await memory_backend.delete("rows", "k1") is False
        assert await memory_backend.load("rows", "k1") is None
        assert not await memory_backend.exists("rows", "k1")

    @pytest.mark.asyncio
    async def test_collections_are_isolated(self, memory_backend):
        await memory_backend.save("rows", "k1", {"identifier": "k1"})
        assert await memory_backend.load("others", "k1") is None

    @pytest.mark.asyncio
    async def test_clear_one_collection(self, memory_backend):
        await memory_backend.save("rows", "k1", {"identifier": "k1"})
        await memory_backend.save("others", "k1", {"identifier": "k1"})
        memory_backend.clear("rows")
        assert await memory_backend.count("rows") == 0
        assert await memory_backend.count("others") == 1

    @pytest.mark.asyncio
    async def test_shutdown_clears_data_unless_disabled(self):
        backend = MemoryBackend(clear_on_shutdown=False)
        await backend.initialize()
        await backend.save("rows", "k1", {"identifier": "k1"})
        await backend.shutdown()
        assert await backend.exists("rows", "k1")

        backend = await seeded()
        await backend.shutdown()
        assert await backend.count("rows") == 0

    @pytest.mark.asyncio
    async def test_metrics(self, memory_backend):
        await memory_backend.save("rows", "k1", {"identifier": "k1"})
        await memory_backend.load("rows", "k1")
        metrics = await memory_backend.get_metrics()
        assert metrics["total_operations"] == 2
        assert metrics["successful_operations"] == 2
        assert metrics["records_count"] == 1
        assert metrics["collections"] == {"rows": 1}


class TestMemoryBackendQuery:
    @pytest.mark.asyncio
    async def test_default_order_is_key_ascending(self):
        backend = await seeded()
        assert keys(await backend.query("rows", QueryOptions())) == ["k1", "k2", "k3", "k4"]

    @pytest.mark.asyncio
    async def test_sort_with_key_tiebreaker_and_nulls_first_ascending(self):
        backend = await seeded()
        options = QueryOptions().add_sort("rank", SortDirection.ASC)
        assert keys(await backend.query("rows", options)) == ["k4", "k2", "k1", "k3"]

    @pytest.mark.asyncio
    async def test_descending_sort_keeps_key_ascending_for_ties(self):
        backend = await seeded()
        options = QueryOptions().add_sort("rank", SortDirection.DESC)
        assert keys(await backend.query("rows", options)) == ["k1", "k3", "k2", "k4"]

    @pytest.mark.asyncio
    async def test_filters(self):
        backend = await seeded()
        cases = [
            (QueryOperator.EQUALS, 2, ["k1", "k3"]),
            (QueryOperator.NOT_EQUALS, 2, ["k2", "k4"]),
            (QueryOperator.GREATER_THAN, 1, ["k1", "k3"]),
            (QueryOperator.LESS_THAN_OR_EQUAL, 1, ["k2"]),
            (QueryOperator.IN, [1, 2], ["k1", "k2", "k3"]),
            (QueryOperator.IS_NULL, None, ["k4"]),
        ]
        for operator, value, expected in cases:
            options = QueryOptions().add_filter("rank", operator, value)
            assert keys(await backend.query("rows", options)) == expected, operator

    @pytest.mark.asyncio
    async def test_contains_matches_substrings(self):
        backend = await seeded()
        options = QueryOptions().add_filter("label", QueryOperator.CONTAINS, "lph")
        assert keys(await backend.query("rows", options)) == ["k2"]

    @pytest.mark.asyncio
    async def test_offset_and_limit_apply_after_ordering(self):
        backend = await seeded()
        options = QueryOptions(offset=1, limit=2).add_sort("rank", SortDirection.ASC)
        assert keys(await backend.query("rows", options)) == ["k2", "k1"]

    @pytest.mark.asyncio
    async def test_keyset_position_returns_rows_strictly_after(self):
        backend = await seeded()
        sort = SortCriteria("rank", SortDirection.ASC)
        options = QueryOptions(sort_by=[sort], after=KeysetPosition(sort=sort, value=2, key="k1"))
        assert keys(await backend.query("rows", options)) == ["k3"]

        descending = SortCriteria("rank", SortDirection.DESC)
        options = QueryOptions(sort_by=[descending], after=KeysetPosition(sort=descending, value=2, key="k3"))
        assert keys(await backend.query("rows", options)) == ["k2", "k4"]

    @pytest.mark.asyncio
    async def test_keyset_without_sort_uses_the_key(self):
        backend = await seeded()
        options = QueryOptions(after=KeysetPosition(sort=None, value=None, key="k2"), limit=1)
        assert keys(await backend.query("rows", options)) == ["k3"]

    @pytest.mark.asyncio
    async def test_count_ignores_pagination(self):
        backend = await seeded()
        assert await backend.count("rows") == 4
        assert await backend.count("rows", QueryOptions().add_filter("rank", QueryOperator.EQUALS, 2).filters) == 2
