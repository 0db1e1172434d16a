from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ._modules import DynamicDependencyModule, LifeCycle


if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._modules import DependencyModule


logger = logging.getLogger(__name__)


class ContainerError(RuntimeError):
    pass


class DuplicateModuleError(ContainerError):
    pass


class UnknownModuleError(ContainerError, KeyError):
    pass


class DuplicateScopeError(ContainerError):
    pass


class UnknownScopeError(ContainerError, KeyError):
    pass


class DependencyCycleError(ContainerError):
    pass


@dataclass(frozen=True)
class ModuleDescription:
    name: str
    type: str
    life_cycle: LifeCycle | None = None  # dynamic modules only
    resolved: bool | None = None  # dynamic modules only


class Container:
    """Registry of named modules and resolver of their values.

    - static modules and SINGLETON / TRANSIENT modules live in the root namespace
      and are shared by every scope
    - SCOPED modules are templates; each scope holds its own clone with its own cache
    - a dynamic module's parameter names are resolved as module names, in the
      same scope as the module itself.
    """

    def __init__(self) -> None:
        self._modules: dict[str, DependencyModule[Any]] = {}
        self._scoped_modules: dict[str, DynamicDependencyModule[Any]] = {}
        self._scopes: dict[str, dict[str, DynamicDependencyModule[Any]]] = {}
        self._lock = threading.RLock()

    def register_module(self, module: DependencyModule[Any], name: str) -> None:
        """Register `module` under `name`.

        Example:
          container.register_module(ValueDependencyModule("sqlite://"), "dsn")
          container.register_module(FunctionDependencyModule(connect, LifeCycle.SCOPED), "db")

        """
        with self._lock:
            if name in self._modules or name in self._scoped_modules:
                msg = f"Module with name {name!r} already exists."
                raise DuplicateModuleError(msg)

            if isinstance(module, DynamicDependencyModule) and module.life_cycle is LifeCycle.SCOPED:
                self._scoped_modules[name] = module
                for scope in self._scopes.values():
                    scope[name] = module.clone()
            else:
                self._modules[name] = module

        logger.debug("Registered module %r (%s)", name, type(module).__name__)

    def register_modules(self, modules: Mapping[str, DependencyModule[Any]]) -> None:
        """Register each `name -> module` entry. Earlier entries stay registered if a later one fails."""
        for name, module in modules.items():
            self.register_module(module, name)

    def remove_module(self, name: str) -> None:
        with self._lock:
            template = self._scoped_modules.pop(name, None)
            root = self._modules.pop(name, None)
            for scope in self._scopes.values():
                scope.pop(name, None)

        if template is not None or root is not None:
            logger.debug("Removed module %r", name)

    def create_scope(self, scope_name: str) -> None:
        """Create a scope holding a fresh clone of every SCOPED module registered so far."""
        with self._lock:
            if scope_name in self._scopes:
                msg = f"Scope with name {scope_name!r} already exists."
                raise DuplicateScopeError(msg)

            self._scopes[scope_name] = {name: module.clone() for name, module in self._scoped_modules.items()}

        logger.debug("Created scope %r", scope_name)

    def delete_scope(self, scope_name: str) -> None:
        with self._lock:
            if scope_name not in self._scopes:
                msg = f"Scope with name {scope_name!r} does not exist."
                raise UnknownScopeError(msg)

            del self._scopes[scope_name]

        logger.debug("Deleted scope %r", scope_name)

    async def resolve_module(self, name: str, scope_name: str | None = None) -> Any:
        """Resolve `name` to a value.

        Lookup order: the scope's clones (or the SCOPED templates when no scope is
        given), then the root namespace. Dependencies of an unresolved dynamic
        module are resolved concurrently, within the same scope, and passed to it
        in declared order. A module that depends on itself, directly or through
        other modules, raises `DependencyCycleError`.
        """
        return await self._resolve(name, scope_name, ())

    async def _resolve(self, name: str, scope_name: str | None, chain: tuple[str, ...]) -> Any:
        if name in chain:
            cycle = " -> ".join((*chain[chain.index(name) :], name))
            msg = f"Dependency cycle detected: {cycle}"
            raise DependencyCycleError(msg)

        module = self._lookup(name, scope_name)

        if not isinstance(module, DynamicDependencyModule):
            return module.resolve()

        if module.is_resolved:
            return await module.resolve()

        # each branch carries its own chain, so shared dependencies are not cycles
        chain = (*chain, name)
        arguments = await asyncio.gather(
            *(self._resolve(parameter, scope_name, chain) for parameter in module.parameters_names)
        )
        return await module.resolve(*arguments)

    def _lookup(self, name: str, scope_name: str | None) -> DependencyModule[Any]:
        with self._lock:
            if scope_name is None:
                scoped = self._scoped_modules
            else:
                scoped = self._scopes.get(scope_name)
                if scoped is None:
                    msg = f"Scope with name {scope_name!r} does not exist."
                    raise UnknownScopeError(msg)

            module = scoped.get(name)
            if module is None:
                module = self._modules.get(name)

        if module is None:
            msg = f"Module with name {name!r} does not exist."
            raise UnknownModuleError(msg)

        return module

    def list_modules(self) -> list[ModuleDescription]:
        """Describe every registered module. Scope clones are not listed."""
        with self._lock:
            entries = [*self._scoped_modules.items(), *self._modules.items()]

        descriptions = []
        for name, module in entries:
            if isinstance(module, DynamicDependencyModule):
                description = ModuleDescription(
                    name=name,
                    type=type(module).__name__,
                    life_cycle=module.life_cycle,
                    resolved=module.is_resolved,
                )
            else:
                description = ModuleDescription(name=name, type=type(module).__name__)
            descriptions.append(description)

        return descriptions

    def list_scopes(self) -> list[str]:
        with self._lock:
            return list(self._scopes)
