"""
Network Builder Protocol Definitions

The provisioning engine is an external collaborator; this is the whole of
what the assembler needs from it.
"""

from typing import Protocol, Dict, Any, List, Optional, runtime_checkable

from .constants import ResourceKind
from .datacls.resources import ResourceHandle


@runtime_checkable
class ProvisioningEngine(Protocol):
    """
    Protocol for engines that turn a declaration into a live resource.
    """

    async def declare(
        self,
        kind: ResourceKind,
        name: str,
        properties: Dict[str, Any],
        depends_on: List[ResourceHandle],
        parent: Optional[str] = None,
    ) -> ResourceHandle:
        """
        Declare one resource and wait until the engine confirms it exists.

        Args:
            kind: Resource kind
            name: Derived, topology-unique resource name
            properties: Engine-shaped properties with all references resolved
            depends_on: Handles of every resource this one must follow
            parent: Ownership parent name, used for lifecycle grouping only

        Returns:
            ResourceHandle carrying the provider-assigned identifier

        Raises:
            Any exception marks this declaration as failed.
        """
        ...
