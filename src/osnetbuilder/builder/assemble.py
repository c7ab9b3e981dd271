import asyncio
import logging
from typing import Dict, List, Optional

from ..config import NetworkTopologySpec
from ..datacls import (
    Declaration,
    DeclarationGraph,
    DeclarationState,
    ResourceHandle,
    TopologyBuildState,
    TopologyOutputs,
)
from ..protocols import ProvisioningEngine
from ..exceptions import ProvisioningFailure
from .graph import build_graph

logger = logging.getLogger(__name__)


class TopologyAssembler:
    """
    Drives every declaration of a graph through the provisioning engine.

    Each declaration runs as its own task and is submitted as soon as all of
    its dependencies resolved; independent declarations are in flight
    together. A failure cancels exactly the declarations that transitively
    depend on it, resolved siblings are kept.
    """

    def __init__(
        self,
        graph: DeclarationGraph,
        engine: ProvisioningEngine,
        max_concurrency: Optional[int] = None,
    ):
        self.graph = graph
        self.engine = engine
        self.state = TopologyBuildState(graph=graph)
        self.max_concurrency = max_concurrency
        self._done: Dict[str, asyncio.Event] = {}
        self._slots: Optional[asyncio.Semaphore] = None

    async def run(self) -> TopologyOutputs:
        """Orchestrates the whole assembly and returns the component outputs."""
        logger.info(f"[Assembler] Provisioning {len(self.graph)} declarations for '{self.graph.base_name}'...")
        self._done = {name: asyncio.Event() for name in self.graph.names()}
        if self.max_concurrency:
            self._slots = asyncio.Semaphore(self.max_concurrency)

        tasks = [
            asyncio.create_task(self._drive(decl), name=f"declare:{decl.name}")
            for decl in self.graph.declarations
        ]
        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            self.state.subnets.seal()
            self.state.ports.seal()

        # Bugs in the assembler itself, not engine failures
        for decl, result in zip(self.graph.declarations, results):
            if isinstance(result, BaseException):
                logger.error(f"[Assembler] Task for '{decl.name}' crashed: {result}")
                raise result

        failed = self.state.in_state(DeclarationState.FAILED)
        outputs = self.state.outputs()
        if failed:
            cancelled = self.state.in_state(DeclarationState.CANCELLED)
            logger.error(
                f"[Assembler] '{self.graph.base_name}' is partial: {len(failed)} failed, "
                f"{len(cancelled)} cancelled, {len(self.state.handles)} resolved."
            )
            raise ProvisioningFailure(
                failed={name: self.state.errors[name] for name in failed},
                chains={name: self.graph.dependency_chain(name) for name in failed},
                cancelled=cancelled,
                outputs=outputs,
                state=self.state,
            )

        logger.info(f"[Assembler] '{self.graph.base_name}' provisioned: {len(self.state.handles)} resources.")
        return outputs

    async def _drive(self, decl: Declaration):
        try:
            blocker = await self._wait_for_dependencies(decl)
            if blocker is not None:
                self.state.mark(decl.name, DeclarationState.CANCELLED)
                self.state.errors[decl.name] = f"dependency '{blocker}' did not resolve"
                logger.warning(f"[Assembler] Cancelled '{decl.name}': dependency '{blocker}' did not resolve.")
                return
            await self._submit(decl)
        finally:
            self._done[decl.name].set()

    async def _wait_for_dependencies(self, decl: Declaration) -> Optional[str]:
        """Wait for each dependency; return the first one that did not resolve."""
        for dep in decl.depends_on:
            await self._done[dep].wait()
            if self.state.states[dep] != DeclarationState.RESOLVED:
                return dep
        return None

    async def _submit(self, decl: Declaration):
        depends_on: List[ResourceHandle] = [self.state.handles[d] for d in decl.depends_on]
        properties = decl.resolve_properties(self.state.ids())

        if self._slots is not None:
            await self._slots.acquire()
        try:
            self.state.mark(decl.name, DeclarationState.SUBMITTED)
            logger.debug(f"[Assembler] Submitting {decl.kind.value} '{decl.name}'...")
            try:
                handle = await self.engine.declare(
                    decl.kind, decl.name, properties, depends_on, parent=decl.parent
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.state.mark(decl.name, DeclarationState.FAILED)
                self.state.errors[decl.name] = f"{type(e).__name__}: {e}"
                logger.error(f"[Assembler] {decl.kind.value} '{decl.name}' failed: {e}")
                return
        finally:
            if self._slots is not None:
                self._slots.release()

        if handle.logical_name != decl.logical_name:
            handle = handle.model_copy(update={"logical_name": decl.logical_name})
        self.state.handles[decl.name] = handle

        # Registered before the interface that follows it can be submitted
        registry = self.state.registry_for(decl.kind)
        if registry is not None:
            registry.register(decl.logical_name, handle)

        self.state.mark(decl.name, DeclarationState.RESOLVED)
        logger.debug(f"[Assembler] {decl.kind.value} '{decl.name}' resolved as '{handle.id}'.")


async def assemble(
    spec: NetworkTopologySpec,
    engine: ProvisioningEngine,
    max_concurrency: Optional[int] = None,
) -> TopologyOutputs:
    """Build the declaration graph of ``spec`` and provision it through ``engine``."""
    graph = build_graph(spec)
    return await TopologyAssembler(graph, engine, max_concurrency=max_concurrency).run()
