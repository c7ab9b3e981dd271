"""
The network topology component: one router, one network, its subnets,
additional router ports and static routes.
"""

import logging
from typing import List, Optional

from . import constants
from .config import Config, NetworkTopologySpec
from .builder import TopologyAssembler, build_graph
from .datacls import DeclarationGraph, TopologyBuildState, TopologyOutputs
from .protocols import ProvisioningEngine
from .exceptions import DefinitionError

logger = logging.getLogger(__name__)


class NetworkTopology:
    """
    Component facade over graph building and assembly.

    The spec is consumed once at construction; the declaration graph is
    derived immediately so configuration errors surface before ``provision``
    can touch the engine.
    """

    type_token = constants.COMPONENT_TYPE

    def __init__(self, spec: NetworkTopologySpec, engine: ProvisioningEngine, max_concurrency: Optional[int] = None):
        self.spec = spec
        self.engine = engine
        self.graph: DeclarationGraph = build_graph(spec)
        self._assembler = TopologyAssembler(self.graph, engine, max_concurrency=max_concurrency)
        self._outputs: Optional[TopologyOutputs] = None
        self._attempted = False

    @classmethod
    def from_config(cls, config: Config, engine: ProvisioningEngine, **kwargs) -> "NetworkTopology":
        return cls(config.spec, engine, **kwargs)

    @classmethod
    async def create(cls, spec: NetworkTopologySpec, engine: ProvisioningEngine, **kwargs) -> "NetworkTopology":
        """Construct and provision in one step."""
        topology = cls(spec, engine, **kwargs)
        await topology.provision()
        return topology

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def state(self) -> TopologyBuildState:
        return self._assembler.state

    async def provision(self) -> TopologyOutputs:
        if self._attempted:
            raise DefinitionError(f"Topology '{self.name}' has already been provisioned.")
        self._attempted = True
        logger.info(f"[Topology] Provisioning '{self.name}' ({self.type_token})...")
        self._outputs = await self._assembler.run()
        return self._outputs

    @property
    def outputs(self) -> TopologyOutputs:
        if self._outputs is None:
            self._require_attempted()
            if not self.state.settled:
                raise DefinitionError(f"Topology '{self.name}' is still being provisioned.")
            raise DefinitionError(
                f"Provisioning of topology '{self.name}' failed; resolved resources are in 'state'."
            )
        return self._outputs

    @property
    def router_id(self) -> str:
        return self.outputs.router_id

    @property
    def network_id(self) -> str:
        return self.outputs.network_id

    @property
    def port_ids(self) -> List[str]:
        return list(self.outputs.port_ids)

    def subnet_ids(self) -> List[str]:
        return list(self.outputs.subnet_ids)

    def subnet_id(self, logical_name: str) -> str:
        """Lookups keep working after a partial failure for every subnet that resolved."""
        self._require_attempted()
        return self.state.subnets.id_of(logical_name)

    def port_id(self, logical_name: str) -> str:
        self._require_attempted()
        return self.state.ports.id_of(logical_name)

    def _require_attempted(self):
        if not self._attempted:
            raise DefinitionError(f"Topology '{self.name}' has not been provisioned yet.")
