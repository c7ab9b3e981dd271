"""
Topology Build State

TopologyBuildState holds everything one assembly run produces. It is owned
by the assembler while the run is in flight and read-only afterwards.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional

from ..constants import ResourceKind
from ..registry import ResourceRegistry
from .resources import DeclarationGraph, ResourceHandle


class DeclarationState(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    RESOLVED = "resolved"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = (DeclarationState.RESOLVED, DeclarationState.FAILED, DeclarationState.CANCELLED)


class TopologyOutputs(BaseModel):
    """
    Public outputs of the component. Sequences follow configuration order.
    Entries are ``None`` only in the partial outputs of a failed run.
    """
    model_config = ConfigDict(frozen=True)

    router_id: Optional[str] = None
    network_id: Optional[str] = None
    subnet_ids: List[Optional[str]] = Field(default_factory=list)
    port_ids: List[Optional[str]] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        ids = [self.router_id, self.network_id, *self.subnet_ids, *self.port_ids]
        return all(i is not None for i in ids)


class TopologyBuildState(BaseModel):
    """
    Per-declaration states, resolved handles, failure reasons and the
    subnet/port registries of one run.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    graph: DeclarationGraph
    states: Dict[str, DeclarationState] = Field(default_factory=dict)
    handles: Dict[str, ResourceHandle] = Field(default_factory=dict)
    errors: Dict[str, str] = Field(default_factory=dict)
    submission_order: List[str] = Field(default_factory=list)
    subnets: Optional[ResourceRegistry] = None
    ports: Optional[ResourceRegistry] = None

    def model_post_init(self, __context) -> None:
        for decl in self.graph.declarations:
            self.states.setdefault(decl.name, DeclarationState.PENDING)
        if self.subnets is None:
            self.subnets = ResourceRegistry(ResourceKind.SUBNET.value, scope=self.graph.base_name)
        if self.ports is None:
            self.ports = ResourceRegistry(ResourceKind.PORT.value, scope=self.graph.base_name)

    def mark(self, name: str, state: DeclarationState) -> None:
        self.states[name] = state
        if state == DeclarationState.SUBMITTED:
            self.submission_order.append(name)

    def registry_for(self, kind: ResourceKind) -> Optional[ResourceRegistry]:
        if kind == ResourceKind.SUBNET:
            return self.subnets
        if kind == ResourceKind.PORT:
            return self.ports
        return None

    def ids(self) -> Dict[str, str]:
        return {name: handle.id for name, handle in self.handles.items()}

    def in_state(self, state: DeclarationState) -> List[str]:
        return [name for name in self.graph.names() if self.states.get(name) == state]

    @property
    def settled(self) -> bool:
        return all(s in TERMINAL_STATES for s in self.states.values())

    def outputs(self) -> TopologyOutputs:
        """Identifiers of router, network, subnets and ports in configuration order."""
        def id_of(name: str) -> Optional[str]:
            handle = self.handles.get(name)
            return handle.id if handle else None

        router = self.graph.of_kind(ResourceKind.ROUTER)
        network = self.graph.of_kind(ResourceKind.NETWORK)
        return TopologyOutputs(
            router_id=id_of(router[0].name) if router else None,
            network_id=id_of(network[0].name) if network else None,
            subnet_ids=[id_of(d.name) for d in self.graph.of_kind(ResourceKind.SUBNET)],
            port_ids=[id_of(d.name) for d in self.graph.of_kind(ResourceKind.PORT)],
        )
