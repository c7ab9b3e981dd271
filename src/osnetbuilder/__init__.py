"""
OSNB (OpenStack Network Builder)

Declarative builder for a fixed-topology network: one router, one network,
subnets attached to the router, extra router ports and static routes.

Main modules:
- config: Configuration loading and validation
- naming: Deterministic resource names
- registry: Logical name -> provisioned handle lookups
- builder: Dependency graph construction and assembly
- engines: Provisioning engines
- topology: The NetworkTopology component
- datacls: Declarations, handles, build state and outputs
- utils: Utility functions

Quick start example:
```python
import asyncio
from osnetbuilder import Config, MemoryEngine, NetworkTopology

config = Config("network.yml")
topology = NetworkTopology.from_config(config, MemoryEngine())
outputs = asyncio.run(topology.provision())
topology.subnet_id("web")
```
"""

__version__ = "0.3.0"

from .protocols import ProvisioningEngine
from .config import Config, ConfigModel, NetworkTopologySpec, RouterSpec, NetworkProperties, SubnetSpec, PortSpec, RouteSpec
from .naming import derive_name, interface_name, NameGenerator
from .registry import ResourceRegistry
from .datacls import Declaration, DeclarationGraph, ResourceHandle, DeclarationState, TopologyBuildState, TopologyOutputs
from .builder import DependencyGraphBuilder, TopologyAssembler, build_graph, assemble
from .engines import MemoryEngine
from .topology import NetworkTopology
from .exceptions import (
    OSNetBuilderError,
    ConfigurationError,
    ConfigValidationError,
    DuplicateNameError,
    DefinitionError,
    NotFoundError,
    ProvisioningError,
    ProvisioningFailure,
)

__all__ = [
    # Version
    '__version__',
    # Protocols
    'ProvisioningEngine',
    # Config
    'Config',
    'ConfigModel',
    'NetworkTopologySpec',
    'RouterSpec',
    'NetworkProperties',
    'SubnetSpec',
    'PortSpec',
    'RouteSpec',
    # Naming
    'derive_name',
    'interface_name',
    'NameGenerator',
    # Registry
    'ResourceRegistry',
    # Data classes
    'Declaration',
    'DeclarationGraph',
    'ResourceHandle',
    'DeclarationState',
    'TopologyBuildState',
    'TopologyOutputs',
    # Builder
    'DependencyGraphBuilder',
    'TopologyAssembler',
    'build_graph',
    'assemble',
    # Engines
    'MemoryEngine',
    # Component
    'NetworkTopology',
    # Exceptions
    'OSNetBuilderError',
    'ConfigurationError',
    'ConfigValidationError',
    'DuplicateNameError',
    'DefinitionError',
    'NotFoundError',
    'ProvisioningError',
    'ProvisioningFailure',
]
