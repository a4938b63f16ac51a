# -*- coding: utf-8 -*-
"""
依赖注入容器测试
"""

from unittest.mock import Mock

import pytest

from pluginhost.core.injector import (
    DependencyCollection,
    Descriptor,
    DescriptorKind,
    Injector,
)
from pluginhost.exceptions import DuplicateDescriptorError, UnresolvedNameError


class TestInjectorRegistration:
    """测试描述符注册"""

    def test_register_and_get_value(self, injector):
        """值描述符直接返回保存的值"""
        config = {"dsn": "sqlite://"}
        injector.register(Descriptor("config", DescriptorKind.VALUE, config))

        assert injector.get("config") is config
        assert "config" in injector
        assert len(injector) == 1

    def test_duplicate_name_raises(self, injector):
        """同名描述符重复注册时报错"""
        injector.value("x", 1)

        with pytest.raises(DuplicateDescriptorError, match="'x' 已注册"):
            injector.register(Descriptor("x", DescriptorKind.FACTORY, lambda: 2))

        # 原描述符保持不变
        assert injector.get("x") == 1

    def test_unknown_name_raises(self, injector):
        """未注册的名称无法解析"""
        with pytest.raises(UnresolvedNameError) as exc_info:
            injector.get("ghost")

        assert exc_info.value.name == "ghost"
        assert isinstance(exc_info.value, KeyError)

    def test_names_preserve_registration_order(self, injector):
        """names() 保持注册顺序"""
        injector.value("b", 1)
        injector.value("a", 2)
        injector.factory("c", lambda: 3)

        assert injector.names() == ["b", "a", "c"]


class TestFactoryMemoization:
    """测试工厂描述符的单例语义"""

    def test_factory_invoked_once(self, injector):
        """工厂只调用一次，之后返回同一实例"""
        producer = Mock(return_value=object())
        injector.factory("service", lambda: producer())

        first = injector.get("service")
        second = injector.get("service")

        assert first is second
        assert producer.call_count == 1

    def test_factory_not_invoked_before_get(self, injector):
        """注册时不会调用工厂"""
        producer = Mock(return_value="value")
        injector.factory("lazy", lambda: producer())

        producer.assert_not_called()

    def test_factory_receives_injector(self, injector):
        """接收一个参数的工厂会拿到注入器，用于解析自身依赖"""
        injector.value("dsn", "sqlite://memory")
        injector.factory("db", lambda inj: {"dsn": inj.get("dsn")})

        assert injector.get("db") == {"dsn": "sqlite://memory"}

    def test_factory_error_propagates_and_is_not_cached(self, injector):
        """工厂异常原样抛出，下次调用会重试"""
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("boom")
            return "ok"

        injector.factory("flaky", flaky)

        with pytest.raises(RuntimeError, match="boom"):
            injector.get("flaky")
        assert injector.get("flaky") == "ok"

    def test_self_referencing_factory_raises(self, injector):
        """工厂解析自身时报错而不是无限递归"""
        injector.factory("loop", lambda inj: inj.get("loop"))

        with pytest.raises(UnresolvedNameError, match="循环依赖") as exc_info:
            injector.get("loop")

        assert exc_info.value.name == "loop"

    def test_mutually_dependent_factories_raise(self, injector):
        injector.factory("a", lambda inj: inj.get("b"))
        injector.factory("b", lambda inj: inj.get("a"))

        with pytest.raises(UnresolvedNameError, match="循环依赖"):
            injector.get("a")

        # 失败后不会残留解析状态，也不会缓存实例
        with pytest.raises(UnresolvedNameError, match="循环依赖"):
            injector.get("b")

    def test_nested_factories_resolve(self, injector):
        injector.factory("config", lambda: {"dsn": "sqlite://"})
        injector.factory("db", lambda inj: ("db", inj.get("config")["dsn"]))
        injector.factory("repo", lambda inj: ("repo", inj.get("db")))

        assert injector.get("repo") == ("repo", ("db", "sqlite://"))


class TestCustomKinds:
    """测试描述符类型扩展点"""

    def test_register_kind(self, injector):
        """自定义类型通过解析函数解析"""
        injector.register_kind("transient", lambda inj, descriptor: descriptor.producer())
        injector.register(Descriptor("fresh", "transient", object))

        assert injector.get("fresh") is not injector.get("fresh")

    def test_unknown_kind_raises(self, injector):
        """没有解析函数的类型无法解析"""
        injector.register(Descriptor("odd", "mystery", None))

        with pytest.raises(UnresolvedNameError, match="mystery"):
            injector.get("odd")

    def test_builtin_kind_cannot_be_replaced(self, injector):
        with pytest.raises(ValueError):
            injector.register_kind(DescriptorKind.FACTORY, lambda inj, d: None)


class TestInjectorFilter:
    """测试描述符查询"""

    @pytest.fixture
    def populated(self, injector):
        injector.factory("a", lambda: "a", type="service")
        injector.factory("b", lambda: "b", type="service")
        injector.value("c", "c", type="setting")
        return injector

    def test_filter_by_structure(self, populated):
        """结构匹配可以使用描述符字段和 metadata 字段"""
        factories = populated.filter({"kind": "factory"})
        services = populated.filter({"type": "service"})

        assert isinstance(factories, DependencyCollection)
        assert factories.names() == ["a", "b"]
        assert services.names() == ["a", "b"]

    def test_filter_by_function(self, populated):
        """函数谓词"""
        collection = populated.filter(lambda descriptor: descriptor.name != "b")

        assert collection.names() == ["a", "c"]

    def test_filter_is_lazy(self, injector):
        """过滤不会解析依赖"""
        producer = Mock(return_value="value")
        injector.factory("lazy", lambda: producer())

        collection = injector.filter({"kind": "factory"}).filter({"name": "lazy"})

        assert len(collection) == 1
        producer.assert_not_called()

        assert collection.values() == ["value"]
        producer.assert_called_once()

    def test_values_align_with_descriptors(self, populated):
        """values() 第 i 项等于 injector.get(collection[i].name)"""
        collection = populated.filter(lambda descriptor: True)
        values = collection.values()

        assert len(values) == len(collection)
        for position, value in enumerate(values):
            assert value is populated.get(collection[position].name)

    def test_values_propagate_resolution_errors(self, injector):
        injector.register(Descriptor("odd", "mystery", None))

        with pytest.raises(UnresolvedNameError):
            injector.filter({}).values()

    def test_filter_binds_collection_to_injector(self, populated):
        collection = populated.filter({"type": "setting"})

        assert collection.injector is populated
        assert collection.filter({"name": "c"}).injector is populated

    def test_no_match_returns_empty_collection(self, populated):
        collection = populated.filter({"type": "missing"})

        assert len(collection) == 0
        assert collection.values() == []
