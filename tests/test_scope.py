import itertools
import unittest

import pytest

from modwire import (
    Container,
    DuplicateScopeError,
    FunctionDependencyModule,
    LifeCycle,
    UnknownModuleError,
    UnknownScopeError,
    ValueDependencyModule,
)


class TestScopeManagement(unittest.TestCase):
    container: Container

    def setUp(self):
        self.container = Container()

    def test_create_and_delete_scope(self):
        self.container.create_scope("scope1")
        assert "scope1" in self.container.list_scopes()

        self.container.delete_scope("scope1")
        assert "scope1" not in self.container.list_scopes()

    def test_create_existing_scope_raises(self):
        self.container.create_scope("scope1")

        with pytest.raises(DuplicateScopeError):
            self.container.create_scope("scope1")

    def test_delete_unknown_scope_raises(self):
        with pytest.raises(UnknownScopeError):
            self.container.delete_scope("nope")

    def test_scope_clones_are_not_listed(self):
        self.container.register_module(FunctionDependencyModule(lambda: 1, LifeCycle.SCOPED), "scopedMod")
        self.container.create_scope("scope1")
        self.container.create_scope("scope2")

        assert [d.name for d in self.container.list_modules()] == ["scopedMod"]


class TestScopedResolution(unittest.IsolatedAsyncioTestCase):
    container: Container

    def setUp(self):
        self.container = Container()

    async def test_scoped_dependency_is_cached_per_scope(self):
        self.container.register_module(FunctionDependencyModule(lambda x: x + "!", LifeCycle.SCOPED), "shout")
        self.container.register_module(ValueDependencyModule("hi"), "x")
        self.container.create_scope("myscope")

        assert await self.container.resolve_module("shout") == "hi!"

        self.container.remove_module("x")
        self.container.register_module(ValueDependencyModule("hello"), "x")

        assert await self.container.resolve_module("shout") == "hi!"
        assert await self.container.resolve_module("shout", "myscope") == "hello!"

    async def test_each_scope_has_its_own_instance(self):
        counter = itertools.count(1)
        self.container.register_module(FunctionDependencyModule(lambda: next(counter), LifeCycle.SCOPED), "session")
        self.container.create_scope("a")
        self.container.create_scope("b")

        assert await self.container.resolve_module("session", "a") == 1
        assert await self.container.resolve_module("session", "b") == 2
        assert await self.container.resolve_module("session") == 3
        assert await self.container.resolve_module("session", "a") == 1
        assert await self.container.resolve_module("session", "b") == 2
        assert await self.container.resolve_module("session") == 3

    async def test_new_scope_starts_with_empty_cache(self):
        counter = itertools.count(1)
        self.container.register_module(FunctionDependencyModule(lambda: next(counter), LifeCycle.SCOPED), "session")
        self.container.create_scope("request")
        assert await self.container.resolve_module("session", "request") == 1

        self.container.delete_scope("request")
        self.container.create_scope("request")

        assert await self.container.resolve_module("session", "request") == 2

    async def test_scoped_module_registered_later_is_added_to_existing_scopes(self):
        self.container.create_scope("request")
        self.container.register_module(FunctionDependencyModule(lambda: "late", LifeCycle.SCOPED), "late")

        assert await self.container.resolve_module("late", "request") == "late"

    async def test_parameters_resolve_in_the_same_scope(self):
        counter = itertools.count(1)
        self.container.register_module(FunctionDependencyModule(lambda: next(counter), LifeCycle.SCOPED), "session")
        self.container.register_module(
            FunctionDependencyModule(lambda session: ("repo", session), LifeCycle.SCOPED), "repository"
        )
        self.container.create_scope("a")
        self.container.create_scope("b")

        assert await self.container.resolve_module("repository", "a") == ("repo", 1)
        assert await self.container.resolve_module("repository", "b") == ("repo", 2)
        assert await self.container.resolve_module("session", "a") == 1

    async def test_root_modules_are_shared_across_scopes(self):
        counter = itertools.count(1)
        self.container.register_module(FunctionDependencyModule(lambda: next(counter), LifeCycle.SINGLETON), "config")
        self.container.create_scope("a")

        assert await self.container.resolve_module("config", "a") == 1
        assert await self.container.resolve_module("config") == 1

    async def test_transient_module_depending_on_scoped_module(self):
        counter = itertools.count(1)
        self.container.register_module(FunctionDependencyModule(lambda: next(counter), LifeCycle.SCOPED), "session")
        self.container.register_module(FunctionDependencyModule(lambda session: session * 100), "handler")
        self.container.create_scope("a")

        assert await self.container.resolve_module("handler", "a") == 100
        assert await self.container.resolve_module("handler") == 200
        assert await self.container.resolve_module("handler", "a") == 100

    async def test_removed_module_is_removed_from_scopes(self):
        self.container.register_module(FunctionDependencyModule(lambda: "scoped", LifeCycle.SCOPED), "scopedMod")
        self.container.create_scope("scope1")
        self.container.remove_module("scopedMod")

        with pytest.raises(UnknownModuleError):
            await self.container.resolve_module("scopedMod", "scope1")

    async def test_resolve_in_deleted_scope_raises(self):
        self.container.register_module(ValueDependencyModule("foo"), "foo")
        self.container.create_scope("scope1")
        self.container.delete_scope("scope1")

        with pytest.raises(UnknownScopeError):
            await self.container.resolve_module("foo", "scope1")
