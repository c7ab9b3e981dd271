import asyncio
import itertools
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ResourceKind
from ..datacls import ResourceHandle
from ..exceptions import EngineRejectedError

logger = logging.getLogger(__name__)


class ResourceRecord(BaseModel):
    """What the engine remembers about one created resource."""
    model_config = ConfigDict(frozen=True)

    id: str
    kind: ResourceKind
    name: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    parent: Optional[str] = None
    depends_on: List[str] = Field(default_factory=list)


class MemoryEngine:
    """
    In-memory provisioning engine.

    Assigns ``<kind>-<n>`` identifiers, optionally sleeps ``latency`` seconds
    per declaration and refuses every name listed in ``fail``. It also refuses
    a declaration whose dependencies it has not created, which makes ordering
    mistakes visible.
    """

    def __init__(
        self,
        latency: float = 0.0,
        fail: Iterable[str] = (),
        id_factory: Optional[Callable[[ResourceKind, str], str]] = None,
    ):
        self.latency = latency
        self.fail = set(fail)
        self.id_factory = id_factory or self._default_id
        self.resources: Dict[str, ResourceRecord] = {}
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._counters: Dict[ResourceKind, itertools.count] = {}

    def _default_id(self, kind: ResourceKind, name: str) -> str:
        counter = self._counters.setdefault(kind, itertools.count(1))
        return f"{kind.value}-{next(counter)}"

    async def declare(
        self,
        kind: ResourceKind,
        name: str,
        properties: Dict[str, Any],
        depends_on: List[ResourceHandle],
        parent: Optional[str] = None,
    ) -> ResourceHandle:
        self.calls.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            logger.debug(f"[Engine] declare {kind.value} '{name}'")
            if self.latency:
                await asyncio.sleep(self.latency)
            if name in self.resources:
                raise EngineRejectedError(f"Resource '{name}' already exists.")
            missing = [h.name for h in depends_on if h.name not in self.resources]
            if missing:
                raise EngineRejectedError(f"Resource '{name}' declared before its dependencies {missing}.")
            if name in self.fail:
                raise EngineRejectedError(f"Resource '{name}' was rejected by the engine.")

            record = ResourceRecord(
                id=self.id_factory(kind, name),
                kind=kind,
                name=name,
                properties=dict(properties),
                parent=parent,
                depends_on=[h.name for h in depends_on],
            )
            self.resources[name] = record
            logger.debug(f"[Engine] {kind.value} '{name}' created as '{record.id}'")
            return ResourceHandle(id=record.id, name=name, kind=kind)
        finally:
            self.in_flight -= 1

    def children(self, parent: str) -> List[str]:
        return [r.name for r in self.resources.values() if r.parent == parent]

    def of_kind(self, kind: ResourceKind) -> List[ResourceRecord]:
        return [r for r in self.resources.values() if r.kind == kind]
