"""
Provisioning engines

- memory: In-memory engine for dry runs and tests
"""

from .memory import MemoryEngine, ResourceRecord

__all__ = [
    'MemoryEngine',
    'ResourceRecord',
]
