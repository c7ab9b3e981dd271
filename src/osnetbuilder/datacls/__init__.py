"""
Network Builder Data Classes

- resources: Declaration, DeclarationGraph, ResourceHandle
- contexts: TopologyBuildState, TopologyOutputs, DeclarationState
"""

from .resources import Declaration, DeclarationGraph, ResourceHandle
from .contexts import DeclarationState, TopologyBuildState, TopologyOutputs, TERMINAL_STATES

__all__ = [
    'Declaration',
    'DeclarationGraph',
    'ResourceHandle',
    'DeclarationState',
    'TopologyBuildState',
    'TopologyOutputs',
    'TERMINAL_STATES',
]
