"""Minimal name-based dependency injection runtime.

Modules are providers registered under a name. A dynamic module's factory or
class is inspected for its parameter names, and each of those names is resolved
as another registered module before the module itself is invoked.

Exports:
- `Container`: registry of named modules with scopes and async resolution.
- `LifeCycle`: caching policy of a dynamic module (singleton, transient or scoped).
- `ValueDependencyModule`: wraps a pre-built value.
- `FunctionDependencyModule` / `ClassDependencyModule`: build the value from a
  factory function (sync or async) or a class constructor.
- `get_parameters_names`: recover the ordered parameter names of a callable
  from its source text.
"""

from ._container import (
    Container,
    ContainerError,
    DependencyCycleError,
    DuplicateModuleError,
    DuplicateScopeError,
    ModuleDescription,
    UnknownModuleError,
    UnknownScopeError,
)
from ._introspection import get_parameters_names
from ._modules import (
    ClassDependencyModule,
    DependencyModule,
    DynamicDependencyModule,
    FunctionDependencyModule,
    LifeCycle,
    StaticDependencyModule,
    ValueDependencyModule,
)


__all__ = [
    "ClassDependencyModule",
    "Container",
    "ContainerError",
    "DependencyCycleError",
    "DependencyModule",
    "DuplicateModuleError",
    "DuplicateScopeError",
    "DynamicDependencyModule",
    "FunctionDependencyModule",
    "LifeCycle",
    "ModuleDescription",
    "StaticDependencyModule",
    "UnknownModuleError",
    "UnknownScopeError",
    "ValueDependencyModule",
    "get_parameters_names",
]
