import asyncio

import pytest

from osnetbuilder.builder import TopologyAssembler, assemble, build_graph
from osnetbuilder.config import NetworkTopologySpec
from osnetbuilder.constants import ResourceKind
from osnetbuilder.datacls import DeclarationState
from osnetbuilder.engines import MemoryEngine
from osnetbuilder.protocols import ProvisioningEngine
from osnetbuilder.exceptions import ProvisioningFailure, RegistrySealedError


def _run(spec, engine, **kwargs):
    assembler = TopologyAssembler(build_graph(spec), engine, **kwargs)
    outputs = asyncio.run(assembler.run())
    return assembler, outputs


@pytest.fixture
def two_subnet_spec(demo_config) -> NetworkTopologySpec:
    demo_config['subnets'].append({'name': 'b', 'cidr': '10.0.1.0/24'})
    return NetworkTopologySpec.model_validate(demo_config)


class RouteOrderEngine(MemoryEngine):
    """Refuses a route while any router interface is still missing."""

    def __init__(self, expected_interfaces, **kwargs):
        super().__init__(**kwargs)
        self.expected_interfaces = set(expected_interfaces)

    async def declare(self, kind, name, properties, depends_on, parent=None):
        if kind == ResourceKind.ROUTER_ROUTE:
            created = {r.name for r in self.of_kind(ResourceKind.ROUTER_INTERFACE)}
            assert self.expected_interfaces <= created, f"route '{name}' submitted too early"
        return await super().declare(kind, name, properties, depends_on, parent=parent)


class ExplodingEngine(MemoryEngine):

    async def declare(self, kind, name, properties, depends_on, parent=None):
        if kind == ResourceKind.PORT:
            raise RuntimeError("quota exceeded")
        return await super().declare(kind, name, properties, depends_on, parent=parent)


class TestSuccessfulAssembly:

    def test_memory_engine_satisfies_protocol(self):
        assert isinstance(MemoryEngine(), ProvisioningEngine)

    def test_demo_outputs(self, demo_spec):
        engine = MemoryEngine()
        assembler, outputs = _run(demo_spec, engine)
        assert outputs.router_id == "router-1"
        assert outputs.network_id == "network-1"
        assert outputs.subnet_ids == ["subnet-1"]
        assert outputs.port_ids == []
        assert outputs.complete
        assert assembler.state.settled
        assert set(engine.calls) == set(build_graph(demo_spec).names())

    def test_subnet_registry_matches_outputs(self, full_spec):
        assembler, outputs = _run(full_spec, MemoryEngine())
        subnets = assembler.state.subnets
        assert len(subnets) == len(full_spec.subnets)
        assert subnets.id_of("db") == outputs.subnet_ids[1]
        assert subnets.lookup("db").name == "prod-subnet-db"
        assert assembler.state.ports.id_of("vip") == outputs.port_ids[0]

    def test_outputs_follow_configuration_order(self, full_spec):
        _, outputs = _run(full_spec, MemoryEngine(latency=0.001))
        assert len(outputs.subnet_ids) == 3
        assert len(set(outputs.subnet_ids)) == 3
        assert len(outputs.port_ids) == 2

    def test_references_are_injected(self, full_spec):
        engine = MemoryEngine()
        _, outputs = _run(full_spec, engine)
        web = engine.resources["prod-subnet-web"]
        assert web.properties["network_id"] == outputs.network_id
        iface = engine.resources["prod-subnet-web-if"]
        assert iface.properties == {"router_id": outputs.router_id, "subnet_id": outputs.subnet_ids[0]}
        route = engine.resources["prod-route-default"]
        assert route.properties["router_id"] == outputs.router_id

    def test_self_network_port_attaches_to_own_network(self, full_spec):
        engine = MemoryEngine()
        _, outputs = _run(full_spec, engine)
        assert engine.resources["prod-port-vip"].properties["network_id"] == outputs.network_id
        assert engine.resources["prod-port-uplink"].properties["network_id"] == "ext-net-42"
        assert engine.resources["prod-port-uplink-if"].properties["port_id"] == outputs.port_ids[1]

    def test_routes_wait_for_every_interface(self, full_spec):
        graph = build_graph(full_spec)
        interfaces = [d.name for d in graph.of_kind(ResourceKind.ROUTER_INTERFACE)]
        engine = RouteOrderEngine(interfaces, latency=0.001)
        _, outputs = _run(full_spec, engine)
        assert outputs.complete

    def test_ownership_is_forwarded_to_engine(self, demo_spec):
        engine = MemoryEngine()
        _run(demo_spec, engine)
        assert sorted(engine.children("demo")) == ["demo-net", "demo-router"]
        assert engine.children("demo-subnet-a") == ["demo-subnet-a-if"]
        assert engine.children("demo-router") == ["demo-route-default"]

    def test_empty_topology(self):
        _, outputs = _run(NetworkTopologySpec(name="bare"), MemoryEngine())
        assert outputs.router_id == "router-1"
        assert outputs.subnet_ids == []

    def test_registries_sealed_after_run(self, demo_spec):
        assembler, _ = _run(demo_spec, MemoryEngine())
        with pytest.raises(RegistrySealedError):
            assembler.state.subnets.register("late", assembler.state.subnets.lookup("a"))

    def test_assemble_shortcut(self, demo_spec):
        outputs = asyncio.run(assemble(demo_spec, MemoryEngine()))
        assert outputs.subnet_ids == ["subnet-1"]


class TestConcurrency:

    def test_independent_declarations_are_in_flight_together(self, full_spec):
        engine = MemoryEngine(latency=0.01)
        _run(full_spec, engine)
        assert engine.max_in_flight >= 2

    def test_max_concurrency_limits_in_flight(self, full_spec):
        engine = MemoryEngine(latency=0.005)
        _, outputs = _run(full_spec, engine, max_concurrency=1)
        assert engine.max_in_flight == 1
        assert outputs.complete

    def test_submission_respects_dependencies(self, full_spec):
        assembler, _ = _run(full_spec, MemoryEngine(latency=0.001))
        order = assembler.state.submission_order
        for decl in assembler.graph.declarations:
            for dep in decl.depends_on:
                assert order.index(dep) < order.index(decl.name)


class TestFailurePropagation:

    def test_failure_cancels_only_dependents(self, two_subnet_spec):
        engine = MemoryEngine(fail={"demo-subnet-a"})
        assembler = TopologyAssembler(build_graph(two_subnet_spec), engine)
        with pytest.raises(ProvisioningFailure) as excinfo:
            asyncio.run(assembler.run())

        states = assembler.state.states
        assert states["demo-subnet-a"] == DeclarationState.FAILED
        assert states["demo-subnet-a-if"] == DeclarationState.CANCELLED
        assert states["demo-route-default"] == DeclarationState.CANCELLED
        assert states["demo-subnet-b"] == DeclarationState.RESOLVED
        assert states["demo-subnet-b-if"] == DeclarationState.RESOLVED
        assert states["demo-router"] == DeclarationState.RESOLVED
        assert assembler.state.settled

        # Cancelled declarations never reach the engine
        assert "demo-subnet-a-if" not in engine.calls
        assert "demo-route-default" not in engine.calls

        failure = excinfo.value
        assert list(failure.failed) == ["demo-subnet-a"]
        assert "was rejected by the engine" in failure.failed["demo-subnet-a"]
        assert failure.chains["demo-subnet-a"] == ["demo-net", "demo-subnet-a"]
        assert failure.cancelled == ["demo-subnet-a-if", "demo-route-default"]
        assert failure.state is assembler.state

    def test_partial_outputs_keep_resolved_ids(self, two_subnet_spec):
        engine = MemoryEngine(fail={"demo-subnet-a"})
        with pytest.raises(ProvisioningFailure) as excinfo:
            asyncio.run(assemble(two_subnet_spec, engine))
        outputs = excinfo.value.outputs
        assert outputs.router_id == "router-1"
        assert outputs.subnet_ids == [None, "subnet-1"]
        assert not outputs.complete

    def test_registries_hold_only_resolved_and_are_sealed(self, two_subnet_spec):
        assembler = TopologyAssembler(build_graph(two_subnet_spec), MemoryEngine(fail={"demo-subnet-a"}))
        with pytest.raises(ProvisioningFailure):
            asyncio.run(assembler.run())
        assert assembler.state.subnets.names() == ["b"]
        assert assembler.state.subnets.sealed

    def test_failure_message_lists_chain_and_cancelled(self, demo_spec):
        with pytest.raises(ProvisioningFailure, match="chain: demo-net -> demo-subnet-a") as excinfo:
            asyncio.run(assemble(demo_spec, MemoryEngine(fail={"demo-subnet-a"})))
        assert "Cancelled dependents: demo-subnet-a-if, demo-route-default" in str(excinfo.value)

    def test_unexpected_engine_exception_is_a_failure(self, full_spec):
        assembler = TopologyAssembler(build_graph(full_spec), ExplodingEngine())
        with pytest.raises(ProvisioningFailure) as excinfo:
            asyncio.run(assembler.run())
        assert excinfo.value.failed["prod-port-vip"] == "RuntimeError: quota exceeded"
        assert assembler.state.states["prod-subnet-web-if"] == DeclarationState.RESOLVED
        assert assembler.state.states["prod-route-default"] == DeclarationState.CANCELLED

    def test_router_failure_cancels_interfaces_and_routes(self, demo_spec):
        assembler = TopologyAssembler(build_graph(demo_spec), MemoryEngine(fail={"demo-router"}))
        with pytest.raises(ProvisioningFailure):
            asyncio.run(assembler.run())
        assert assembler.state.in_state(DeclarationState.RESOLVED) == ["demo-net", "demo-subnet-a"]
        assert assembler.state.errors["demo-subnet-a-if"] == "dependency 'demo-router' did not resolve"
