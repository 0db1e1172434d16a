from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union, cast

from ._introspection import get_parameters_names, get_parameters_tokens


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    FunctionModuleResolver = Callable[..., Union["T", Awaitable["T"]]]
    ClassModuleResolver = type
    ModuleResolver = Union[FunctionModuleResolver, ClassModuleResolver]


T = TypeVar("T")


class LifeCycle(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"
    SCOPED = "scoped"


_CACHED_LIFE_CYCLES = frozenset({LifeCycle.SINGLETON, LifeCycle.SCOPED})

_EMPTY = object()  # empty cache slot


class DependencyModule(ABC, Generic[T]):
    """A named provider of a dependency value."""

    @abstractmethod
    def resolve(self, *args: Any) -> T | Awaitable[T]: ...


class StaticDependencyModule(DependencyModule[T]):
    """Provider of a value fixed at construction. Always behaves as a singleton."""

    def __init__(self, value: T) -> None:
        self._value = value

    @property
    def value(self) -> T:
        return self._value

    def resolve(self) -> T:
        return self._value


class ValueDependencyModule(StaticDependencyModule[T]):
    pass


class DynamicDependencyModule(DependencyModule[T]):
    """Provider that produces its value by calling a resolver.

    The resolver's parameter names are the names of the modules it depends on.
    The produced value is cached according to the module's life cycle:

    - TRANSIENT: never cached, every resolution calls the resolver again
    - SINGLETON / SCOPED: the first result is kept and returned from then on.
    """

    def __init__(self, resolver: ModuleResolver, life_cycle: LifeCycle | None = None) -> None:
        self._resolver = resolver
        self._life_cycle = LifeCycle.TRANSIENT if life_cycle is None else life_cycle
        self._cache: object = _EMPTY

    @property
    def resolver(self) -> ModuleResolver:
        return self._resolver

    @property
    def life_cycle(self) -> LifeCycle:
        return self._life_cycle

    @property
    def is_resolved(self) -> bool:
        return self._cache is not _EMPTY

    @property
    def parameters_names(self) -> list[str]:
        return get_parameters_names(self._resolver)

    def clone(self) -> DynamicDependencyModule[T]:
        """Same resolver and life cycle, empty cache.

        Subclasses carrying extra constructor state must override this.
        """
        return type(self)(self._resolver, self._life_cycle)

    async def resolve(self, *args: Any) -> T:
        """Return the cached value, or produce one from `args`.

        `args` are the values of `parameters_names`, in that order. Keyword-only
        parameters are passed by keyword, `*name` values are unpacked as extra
        positionals and `**name` values as extra keywords. `args` are ignored
        on a cache hit. Exceptions raised by the resolver propagate unchanged
        and leave the cache empty.
        """
        if self._cache is not _EMPTY:
            return cast("T", self._cache)

        positional, keywords = self._call_arguments(args)
        result = await self._produce(*positional, **keywords)
        if self._life_cycle in _CACHED_LIFE_CYCLES:
            self._cache = result

        return result

    def _call_arguments(self, values: tuple[Any, ...]) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        keyword_only = False
        remaining = iter(values)

        for token in get_parameters_tokens(self._resolver):
            if token == "/":
                continue
            if token == "*":
                keyword_only = True
                continue

            value = next(remaining, _EMPTY)
            if value is _EMPTY:
                break

            if token.startswith("**"):
                kwargs.update(value)
            elif token.startswith("*"):
                args.extend(value)
                keyword_only = True
            elif keyword_only:
                kwargs[token] = value
            else:
                args.append(value)

        # values beyond the declared parameters stay positional
        args.extend(remaining)
        return args, kwargs

    @abstractmethod
    async def _produce(self, *args: Any, **kwargs: Any) -> T: ...


class FunctionDependencyModule(DynamicDependencyModule[T]):
    """Dynamic module backed by a factory function, sync or async."""

    def __init__(self, resolver: FunctionModuleResolver, life_cycle: LifeCycle | None = None) -> None:
        super().__init__(resolver, life_cycle)

    async def _produce(self, *args: Any, **kwargs: Any) -> T:
        result = self._resolver(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return cast("T", result)


class ClassDependencyModule(DynamicDependencyModule[T]):
    """Dynamic module backed by a class; its constructor parameters are the dependencies."""

    def __init__(self, resolver: ClassModuleResolver, life_cycle: LifeCycle | None = None) -> None:
        super().__init__(resolver, life_cycle)

    async def _produce(self, *args: Any, **kwargs: Any) -> T:
        return cast("T", self._resolver(*args, **kwargs))
