"""
Declarations and handles

A Declaration is what the graph builder emits and the assembler submits: a
kind, a derived name, engine-shaped properties and the must-follow edges.
A ResourceHandle is what the engine hands back once the resource exists.
"""

from collections import deque
from typing import Any, Dict, List, Optional, Set, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import ResourceKind
from ..exceptions import CircularDependencyError, DuplicateNameError, NotFoundError


class ResourceHandle(BaseModel):
    """
    Resolved result of a declaration, read-only.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: ResourceKind
    logical_name: Optional[str] = None


class Declaration(BaseModel):
    """
    A request to bring one resource into existence.

    ``refs`` maps a property name to the declaration whose resolved id is
    injected into that property at submission time. Every ref target is also
    listed in ``depends_on``.
    """
    model_config = ConfigDict(frozen=True)

    kind: ResourceKind
    name: str
    logical_name: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    refs: Dict[str, str] = Field(default_factory=dict)
    depends_on: Tuple[str, ...] = ()
    parent: Optional[str] = None

    def resolve_properties(self, ids: Dict[str, str]) -> Dict[str, Any]:
        """Properties with every ref replaced by the target's resolved id."""
        resolved = dict(self.properties)
        for prop, target in self.refs.items():
            if target not in ids:
                raise NotFoundError(
                    f"Declaration '{self.name}' references '{target}' for '{prop}', which has not resolved."
                )
            resolved[prop] = ids[target]
        return resolved


class DeclarationGraph(BaseModel):
    """
    Ordered declarations of one topology plus lookups over their edges.
    """
    model_config = ConfigDict(frozen=True)

    base_name: str
    declarations: Tuple[Declaration, ...] = ()

    @model_validator(mode='after')
    def check_unique_names(self) -> 'DeclarationGraph':
        seen: Set[str] = set()
        dupes = []
        for decl in self.declarations:
            if decl.name in seen and decl.name not in dupes:
                dupes.append(decl.name)
            seen.add(decl.name)
        if dupes:
            raise DuplicateNameError(
                f"Duplicate declaration names in topology '{self.base_name}': {', '.join(dupes)}"
            )
        return self

    def __len__(self) -> int:
        return len(self.declarations)

    def __contains__(self, name: str) -> bool:
        return any(d.name == name for d in self.declarations)

    def get(self, name: str) -> Declaration:
        for decl in self.declarations:
            if decl.name == name:
                return decl
        raise NotFoundError(f"Declaration '{name}' not found in topology '{self.base_name}'.")

    def names(self) -> List[str]:
        return [d.name for d in self.declarations]

    def of_kind(self, kind: ResourceKind) -> List[Declaration]:
        return [d for d in self.declarations if d.kind == kind]

    def direct_dependents(self, name: str) -> List[str]:
        return [d.name for d in self.declarations if name in d.depends_on]

    def dependents(self, name: str) -> Set[str]:
        """All declarations that transitively depend on ``name``."""
        found: Set[str] = set()
        queue = deque(self.direct_dependents(name))
        while queue:
            current = queue.popleft()
            if current in found:
                continue
            found.add(current)
            queue.extend(self.direct_dependents(current))
        return found

    def dependency_chain(self, name: str) -> List[str]:
        """
        One path from a root declaration down to ``name``, following the
        first listed dependency at every step.
        """
        chain = [name]
        current = self.get(name)
        while current.depends_on:
            current = self.get(current.depends_on[0])
            if current.name in chain:
                raise CircularDependencyError(
                    f"Circular dependency: {' -> '.join(reversed(chain + [current.name]))}"
                )
            chain.append(current.name)
        return list(reversed(chain))

    def topological_order(self) -> List[str]:
        """Kahn's algorithm, ties broken by declaration order."""
        position = {d.name: i for i, d in enumerate(self.declarations)}
        remaining = {d.name: set(d.depends_on) for d in self.declarations}
        for name, deps in remaining.items():
            unknown = deps - position.keys()
            if unknown:
                raise NotFoundError(f"Declaration '{name}' depends on unknown {sorted(unknown)}.")

        order: List[str] = []
        while remaining:
            ready = sorted((n for n, deps in remaining.items() if not deps), key=position.__getitem__)
            if not ready:
                raise CircularDependencyError(
                    f"Circular dependency among declarations: {sorted(remaining)}"
                )
            for name in ready:
                order.append(name)
                del remaining[name]
            for deps in remaining.values():
                deps.difference_update(ready)
        return order
