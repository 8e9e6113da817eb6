"""Tests for the eligible-children resolver."""

import pytest

from work_item_splitter.split.cache import TypeMetadataCache
from work_item_splitter.split.children import EligibleChildrenResolver
from work_item_splitter.split.errors import WorkItemNotFoundError

from tests.conftest import attachment, child_link, make_work_item, parent_link


def make_resolver(store):
    return EligibleChildrenResolver(store, TypeMetadataCache(store))


class TestEligibleChildrenResolver:
    """Default selection proposed to the user."""

    @pytest.mark.asyncio
    async def test_filters_done_children_in_fetch_order(self, feature_store):
        parent = await feature_store.get_work_item(100)
        result = await make_resolver(feature_store).resolve(parent)

        assert result.has_children
        assert result.eligible_ids == [101, 103]
        assert result.fetched_ids == [101, 102, 103]

    @pytest.mark.asyncio
    async def test_no_children_is_not_an_error(self, store):
        parent = store.add(make_work_item(1, relations=[parent_link(9), attachment()]))
        result = await make_resolver(store).resolve(parent)

        assert not result.has_children
        assert result.eligible == []
        assert not [call for call in store.calls if call[0] == "get_many"]

    @pytest.mark.asyncio
    async def test_all_children_done(self, store):
        store.add(make_work_item(2, state="Closed"))
        store.add(make_work_item(3, state="Removed"))
        parent = store.add(make_work_item(1, relations=[child_link(2), child_link(3)]))
        result = await make_resolver(store).resolve(parent)

        assert result.has_children
        assert result.eligible == []

    @pytest.mark.asyncio
    async def test_mixed_types_use_their_own_states(self, store):
        store.type_states.pop("Feature")
        store.add(make_work_item(2, work_item_type="Task", state="Done"))
        store.add(make_work_item(3, work_item_type="Feature", state="Done"))
        parent = store.add(make_work_item(1, relations=[child_link(2), child_link(3)]))

        result = await make_resolver(store).resolve(parent)

        # Task states come from the process, where "Done" is not a done state;
        # Feature falls back to the default exclusion set.
        assert result.eligible_ids == [2]

    @pytest.mark.asyncio
    async def test_states_fetched_once_for_shared_type(self, feature_store):
        parent = await feature_store.get_work_item(100)
        await make_resolver(feature_store).resolve(parent)
        assert [c for c in feature_store.calls if c[0] == "type_states"] == [
            ("type_states", "Task")
        ]

    @pytest.mark.asyncio
    async def test_resolving_twice_gives_same_ids(self, feature_store):
        parent = await feature_store.get_work_item(100)
        resolver = make_resolver(feature_store)
        first = await resolver.resolve(parent)
        second = await resolver.resolve(parent)
        assert first.eligible_ids == second.eligible_ids

    @pytest.mark.asyncio
    async def test_missing_child_is_surfaced(self, store):
        parent = store.add(make_work_item(1, relations=[child_link(404)]))
        with pytest.raises(WorkItemNotFoundError):
            await make_resolver(store).resolve(parent)
