"""
Tests for IndexManager
"""
import pytest
from unittest.mock import AsyncMock, Mock

from jsonapi import errors as jsonapi
from operations.index_manager import IndexManager, normalize_fields
from store.interfaces import IndexResult, StoreError

pytestmark = pytest.mark.asyncio

EVENTS = "io.cozy.events"


class TestNormalizeFields:

    def test_strings_and_directions(self):
        assert normalize_fields(["year", {"title": "desc"}]) == ["year", "title"]

    @pytest.mark.parametrize("bad", [[""], [1], [{"a": "asc", "b": "asc"}]])
    def test_invalid_entries(self, bad):
        with pytest.raises(jsonapi.Error) as exc_info:
            normalize_fields(bad)
        assert exc_info.value.status == 422


class TestEnsureIndex:

    async def test_created_then_exists(self, sqlite_store, instance):
        manager = IndexManager(sqlite_store)
        first = await manager.ensure_index(instance, EVENTS, ["year"])
        second = await manager.ensure_index(instance, EVENTS, [{"year": "asc"}])
        assert first.result == "created"
        assert second.result == "exists"
        assert (first.id, first.name) == (second.id, second.name)

    async def test_indexes_are_per_instance_database(self, sqlite_store, instance):
        manager = IndexManager(sqlite_store)
        await manager.ensure_index(instance, EVENTS, ["year"])
        assert len(await manager.list_indexes(instance, EVENTS)) == 1
        assert await manager.list_indexes(instance, "io.cozy.contacts") == []

    async def test_empty_fields_is_bad_json(self, sqlite_store, instance):
        with pytest.raises(jsonapi.Error) as exc_info:
            await IndexManager(sqlite_store).ensure_index(instance, EVENTS, [])
        assert exc_info.value.status == 400
        assert exc_info.value.detail == jsonapi.BAD_JSON_DETAIL

    async def test_store_failure_is_translated(self, instance):
        store = Mock()
        store.define_index = AsyncMock(side_effect=StoreError.unreachable("down"))
        with pytest.raises(jsonapi.Error) as exc_info:
            await IndexManager(store).ensure_index(instance, EVENTS, ["year"])
        assert exc_info.value.status == 500

    async def test_passes_name_and_ddoc(self, instance):
        store = Mock()
        store.define_index = AsyncMock(return_value=IndexResult("created", "_design/e", "by-year"))
        await IndexManager(store).ensure_index(instance, EVENTS, ["year"], name="by-year", ddoc="e")
        store.define_index.assert_awaited_once_with(
            "example-com/io-cozy-events", ["year"], name="by-year", ddoc="e"
        )
