"""
Network Builder Builder Module

- DependencyGraphBuilder: Configuration -> ordered declarations with edges
- TopologyAssembler: Drives declarations through a provisioning engine
- Mapper: Plan and ownership summaries of a declaration graph
- GraphGenerator: DOT graph generation

Usage:
    from osnetbuilder.builder import build_graph, TopologyAssembler

    graph = build_graph(config.spec)
    outputs = await TopologyAssembler(graph, engine).run()
"""

from .graph import DependencyGraphBuilder, build_graph
from .assemble import TopologyAssembler, assemble
from .map import Mapper, GraphGenerator

__all__ = [
    'DependencyGraphBuilder',
    'build_graph',
    'TopologyAssembler',
    'assemble',
    'Mapper',
    'GraphGenerator',
]
