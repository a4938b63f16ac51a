# -*- coding: utf-8 -*-
"""
查询集合与回调调用辅助函数测试
"""

from types import SimpleNamespace

import pytest

from pluginhost.core.calling import accepted_positional_count, call_with_supported_args
from pluginhost.core.collection import QueryCollection, matches


def item(name, **kwargs):
    return SimpleNamespace(name=name, **kwargs)


class TestMatches:
    """测试谓词匹配"""

    def test_structural_match_requires_every_key(self):
        target = item("db", kind="factory", enabled=True)

        assert matches(target, {"kind": "factory"})
        assert matches(target, {"kind": "factory", "enabled": True})
        assert not matches(target, {"kind": "factory", "enabled": False})

    def test_missing_key_does_not_match(self):
        """缺失字段不等于 None"""
        assert not matches(item("db"), {"enabled": None})

    def test_falls_back_to_mapping_metadata(self):
        target = item("db", metadata={"tier": "storage"})

        assert matches(target, {"tier": "storage"})
        assert not matches(target, {"tier": "cache"})

    def test_falls_back_to_object_metadata(self):
        target = item("db", metadata=SimpleNamespace(version="1.0.0"))

        assert matches(target, {"version": "1.0.0"})

    def test_empty_mapping_matches_everything(self):
        assert matches(item("anything"), {})

    def test_function_predicate(self):
        assert matches(item("db.main"), lambda x: x.name.startswith("db."))
        assert not matches(item("cache"), lambda x: x.name.startswith("db."))

    def test_unsupported_predicate_raises(self):
        with pytest.raises(TypeError):
            matches(item("db"), 42)


class TestQueryCollection:
    """测试查询集合"""

    @pytest.fixture
    def collection(self):
        source = object()
        items = [item("a", group=1), item("b", group=2), item("c", group=1)]
        return QueryCollection(items, source)

    def test_filter_preserves_order_and_source(self, collection):
        result = collection.filter({"group": 1})

        assert result.names() == ["a", "c"]
        assert result.source is collection.source

    def test_filter_chain(self, collection):
        result = collection.filter({"group": 1}).filter(lambda x: x.name == "c")

        assert result.names() == ["c"]

    def test_map_returns_list_in_order(self, collection):
        assert collection.map(lambda x: x.name.upper()) == ["A", "B", "C"]

    def test_sequence_protocol(self, collection):
        first = collection.first()

        assert len(collection) == 3
        assert collection[0] is first
        assert first in collection
        assert item("a", group=1) not in collection
        assert [x.name for x in collection] == ["a", "b", "c"]

    def test_slice_returns_collection(self, collection):
        sliced = collection[1:]

        assert isinstance(sliced, QueryCollection)
        assert sliced.names() == ["b", "c"]
        assert sliced.source is collection.source

    def test_empty_collection(self):
        empty = QueryCollection()

        assert not empty
        assert empty.first() is None
        assert empty.values() == []
        assert repr(empty) == "QueryCollection([])"


class TestCallWithSupportedArgs:
    """测试按签名传参"""

    def test_positional_count(self):
        def two(a, b, *, c=None):
            pass

        def variadic(*args):
            pass

        assert accepted_positional_count(lambda: None) == 0
        assert accepted_positional_count(two) == 2
        assert accepted_positional_count(variadic) == -1

    def test_truncates_arguments(self):
        assert call_with_supported_args(lambda: "none", 1, 2) == "none"
        assert call_with_supported_args(lambda a: a, 1, 2) == 1
        assert call_with_supported_args(lambda a, b: (a, b), 1, 2) == (1, 2)
        assert call_with_supported_args(lambda *args: args, 1, 2) == (1, 2)

    def test_bound_method(self):
        class Service:
            def setup(self, plugin):
                return plugin

        assert call_with_supported_args(Service().setup, "plugin", "injector") == "plugin"
