import logging
from typing import Dict, Any, List, Optional, Tuple

from pydantic import BaseModel

from .. import constants
from ..constants import ResourceKind
from ..config import NetworkTopologySpec, PortSpec, SubnetSpec, RouteSpec
from ..datacls import Declaration, DeclarationGraph
from ..naming import NameGenerator, check_unique, derive_name
from ..exceptions import ConfigurationError, PortNetworkError

logger = logging.getLogger(__name__)

# Fields that steer graph construction and are never sent to the engine
_SUBNET_GRAPH_FIELDS = {"logical_name"}
_PORT_GRAPH_FIELDS = {"logical_name", "self_network", "network_id"}
_ROUTE_GRAPH_FIELDS = {"description"}


def engine_properties(model: BaseModel, exclude: Optional[set] = None) -> Dict[str, Any]:
    """JSON-shaped properties of a spec model, without graph-only fields and unset defaults."""
    return model.model_dump(mode="json", exclude=exclude or set(), exclude_defaults=True)


class DependencyGraphBuilder:
    """
    Turns a NetworkTopologySpec into an ordered DeclarationGraph.

    Validation runs to completion before the first declaration is emitted, so
    a configuration error never leaves a partial graph behind.
    """
    def __init__(self, spec: NetworkTopologySpec):
        self.spec = spec
        self.base_name = spec.name
        self.declarations: List[Declaration] = []
        self.names: Optional[NameGenerator] = None
        self.router_name = ""
        self.network_name = ""

    def build(self) -> DeclarationGraph:
        """The main entry point to derive every declaration of the topology."""
        logger.info(f"[Graph] Building declaration graph for '{self.base_name}'...")
        self._validate()
        self.names = NameGenerator(self.base_name)
        self.declarations = []

        self._declare_router()
        self._declare_network()
        interface_bearing: List[str] = []
        for position, subnet in enumerate(self.spec.subnets, start=1):
            interface_bearing.extend(self._declare_subnet(subnet, position))
        for port in self.spec.additional_ports:
            interface_bearing.extend(self._declare_port(port))
        for position, route in enumerate(self.spec.routes, start=1):
            self._declare_route(route, position, interface_bearing)

        graph = DeclarationGraph(base_name=self.base_name, declarations=tuple(self.declarations))
        # Fails on a cycle; the fixed order above never produces one.
        graph.topological_order()
        logger.info(f"[Graph] Declaration graph for '{self.base_name}' has {len(graph)} declarations.")
        return graph

    def _validate(self):
        logger.debug("[Graph] Validating topology before declaring anything...")
        if not self.base_name or not self.base_name.strip():
            raise ConfigurationError("Topology base name must be a non-empty string.")
        check_unique((s.logical_name for s in self.spec.subnets), "subnet")
        check_unique((p.logical_name for p in self.spec.additional_ports), "port")
        check_unique((r.description for r in self.spec.routes), "route")

        # Dry run of every derived name catches label/position collisions too
        dry = NameGenerator(self.base_name)
        dry.router()
        dry.network()
        for position, subnet in enumerate(self.spec.subnets, start=1):
            dry.interface(dry.subnet(subnet.logical_name, position))
            if not subnet.logical_name:
                logger.warning(
                    f"[Graph] Subnet #{position} ({subnet.cidr}) has no 'name'; its resource name "
                    f"and lookup key follow its position and change if subnets are reordered."
                )
        for port in self.spec.additional_ports:
            dry.interface(dry.port(port.logical_name))
            self.resolve_port_network(port)
        for position, route in enumerate(self.spec.routes, start=1):
            dry.route(route.description, position)
            if not route.description:
                logger.warning(
                    f"[Graph] Route #{position} ({route.destination_cidr}) has no 'description'; its "
                    f"resource name follows its position and changes if routes are reordered."
                )
        logger.debug("[Graph] Topology validation completed successfully.")

    def resolve_port_network(self, port: PortSpec) -> Tuple[Optional[str], Optional[str]]:
        """
        Decide where a port lives.

        Returns ``(ref, network_id)``: the own network declaration name when
        ``self_network`` is set, otherwise the external id supplied in config.
        """
        if port.self_network:
            if port.network_id:
                logger.warning(
                    f"[Graph] Port '{port.logical_name}' sets both 'self_network' and 'network_id'; "
                    f"'network_id' is ignored."
                )
            return self.network_name or self._network_name(), None
        if port.network_id:
            return None, port.network_id
        raise PortNetworkError(
            f"Port '{port.logical_name}' must specify 'network_id' when self_network=false."
        )

    def _network_name(self) -> str:
        return derive_name(self.base_name, constants.Role.NETWORK)

    def _add(self, declaration: Declaration) -> Declaration:
        self.declarations.append(declaration)
        logger.debug(
            f"[Graph] {declaration.kind.value} '{declaration.name}' depends on "
            f"{list(declaration.depends_on) or 'nothing'} (parent: {declaration.parent})"
        )
        return declaration

    def _declare_router(self):
        self.router_name = self.names.router()
        self._add(Declaration(
            kind=ResourceKind.ROUTER,
            name=self.router_name,
            properties={**engine_properties(self.spec.router), constants.NAME: self.router_name},
            parent=self.base_name,
        ))

    def _declare_network(self):
        # Networks and routers are independent; interfaces join them later.
        self.network_name = self.names.network()
        self._add(Declaration(
            kind=ResourceKind.NETWORK,
            name=self.network_name,
            properties={**engine_properties(self.spec.network), constants.NAME: self.network_name},
            parent=self.base_name,
        ))

    def _declare_subnet(self, subnet: SubnetSpec, position: int) -> List[str]:
        subnet_name = self.names.subnet(subnet.logical_name, position)
        self._add(Declaration(
            kind=ResourceKind.SUBNET,
            name=subnet_name,
            logical_name=NameGenerator.suffix(subnet.logical_name, position),
            properties={**engine_properties(subnet, _SUBNET_GRAPH_FIELDS), constants.NAME: subnet_name},
            refs={constants.NETWORK_ID: self.network_name},
            depends_on=(self.network_name,),
            parent=self.network_name,
        ))
        iface = self._declare_interface(subnet_name, constants.SUBNET_ID)
        return [subnet_name, iface]

    def _declare_port(self, port: PortSpec) -> List[str]:
        port_name = self.names.port(port.logical_name)
        network_ref, network_id = self.resolve_port_network(port)
        properties = {**engine_properties(port, _PORT_GRAPH_FIELDS), constants.NAME: port_name}
        refs: Dict[str, str] = {}
        depends_on: Tuple[str, ...] = ()
        if network_ref:
            refs[constants.NETWORK_ID] = network_ref
            depends_on = (network_ref,)
        else:
            properties[constants.NETWORK_ID] = network_id
        self._add(Declaration(
            kind=ResourceKind.PORT,
            name=port_name,
            logical_name=port.logical_name,
            properties=properties,
            refs=refs,
            depends_on=depends_on,
            parent=self.network_name,
        ))
        iface = self._declare_interface(port_name, constants.PORT_ID)
        return [port_name, iface]

    def _declare_interface(self, target: str, target_prop: str) -> str:
        name = self.names.interface(target)
        self._add(Declaration(
            kind=ResourceKind.ROUTER_INTERFACE,
            name=name,
            refs={constants.ROUTER_ID: self.router_name, target_prop: target},
            depends_on=(self.router_name, target),
            parent=target,
        ))
        return name

    def _declare_route(self, route: RouteSpec, position: int, interface_bearing: List[str]):
        # A next hop is only reachable through an attached interface, so every
        # route follows all subnets, ports and their interfaces. With the
        # interface edges, one failed attachment cancels every route.
        route_name = self.names.route(route.description, position)
        depends_on = tuple(dict.fromkeys([self.router_name, *interface_bearing]))
        self._add(Declaration(
            kind=ResourceKind.ROUTER_ROUTE,
            name=route_name,
            logical_name=NameGenerator.suffix(route.description, position),
            properties=engine_properties(route, _ROUTE_GRAPH_FIELDS),
            refs={constants.ROUTER_ID: self.router_name},
            depends_on=depends_on,
            parent=self.router_name,
        ))


def build_graph(spec: NetworkTopologySpec) -> DeclarationGraph:
    return DependencyGraphBuilder(spec).build()
