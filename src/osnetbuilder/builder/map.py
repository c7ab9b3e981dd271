import logging
from pathlib import Path
from typing import Dict, List, Optional

import graphviz

from .. import constants
from ..datacls import DeclarationGraph, DeclarationState
from ..exceptions import DefinitionError

logger = logging.getLogger(__name__)


class Mapper:
    """
    Summarizes a declaration graph as dependency and ownership adjacency lists.
    """
    def __init__(self, graph: DeclarationGraph):
        self.graph = graph

    def dependencies(self) -> Dict[str, List[str]]:
        return {d.name: list(d.depends_on) for d in self.graph.declarations}

    def ownership(self) -> Dict[str, List[str]]:
        """Parent name -> children, the tree used for lifecycle grouping."""
        tree: Dict[str, List[str]] = {}
        for decl in self.graph.declarations:
            if decl.parent is not None:
                tree.setdefault(decl.parent, []).append(decl.name)
        return tree

    def plan(self) -> List[Dict[str, object]]:
        """Declarations in submission order with their edges, for display."""
        rows = []
        for step, name in enumerate(self.graph.topological_order(), start=1):
            decl = self.graph.get(name)
            rows.append({
                "step": step,
                "kind": decl.kind.value,
                "name": decl.name,
                "depends_on": list(decl.depends_on),
                "parent": decl.parent,
            })
        return rows

    def log_plan(self):
        """Logs the plan in a readable format."""
        logger.debug("--- Declaration Plan ---")
        for row in self.plan():
            deps = ", ".join(row["depends_on"]) or "-"
            logger.debug(f"  {row['step']:>3}. {row['kind']:<16} {row['name']}  <- {deps}")
        logger.debug("------------------------")


class GraphGenerator:
    """
    Generates a Graphviz DOT file from a declaration graph.

    Dependency edges are solid, ownership edges dashed. When a build state is
    given, failed and cancelled declarations are highlighted.
    """
    def __init__(self, graph: DeclarationGraph, states: Optional[Dict[str, DeclarationState]] = None):
        if not graph.base_name:
            raise DefinitionError("Graph has no base name.")
        self.graph = graph
        self.states = states or {}

    def digraph(self) -> graphviz.Digraph:
        dot = graphviz.Digraph(
            self.graph.base_name,
            comment=f'Network topology declarations for {self.graph.base_name}',
            graph_attr={'rankdir': 'LR', 'splines': 'true', 'overlap': 'false', 'fontsize': '12'},
            node_attr={'shape': 'box', 'style': 'rounded,filled'},
            edge_attr={'color': '#4a4a4a'}
        )
        dot.node(self.graph.base_name, label=f"{self.graph.base_name}\\n({constants.COMPONENT_TYPE})",
                 shape='ellipse', fillcolor='#f0f0f0')
        for decl in self.graph.declarations:
            fill = constants.KIND_COLORS.get(decl.kind, '#ffffff')
            state = self.states.get(decl.name)
            if state == DeclarationState.FAILED:
                fill = '#ff9e9e'
            elif state == DeclarationState.CANCELLED:
                fill = '#d9d9d9'
            dot.node(decl.name, label=f"{decl.name}\\n[{decl.kind.value}]", fillcolor=fill)
        for decl in self.graph.declarations:
            for dep in decl.depends_on:
                dot.edge(dep, decl.name)
            if decl.parent is not None:
                dot.edge(decl.parent, decl.name, style='dashed', color='#9e9e9e', arrowhead='none')
        return dot

    def generate_dot_file(self, output_path: str):
        """
        Creates and saves the DOT graph file.
        """
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(self.digraph().source, encoding='utf-8')
        logger.info(f"Declaration graph written to '{output_file}'")
