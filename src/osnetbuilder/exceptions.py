from typing import Dict, List, Optional, Any


class OSNetBuilderError(Exception):
    """Base exception for all application-specific errors."""

    pass


# --- 1. Errors related to loading and validating the topology configuration ---
class ConfigurationError(OSNetBuilderError):
    """Base class for errors detected before any resource is declared."""

    pass


class ConfigFileMissingError(ConfigurationError):
    """Raised when the configuration file cannot be found."""

    pass


class ConfigParsingError(ConfigurationError):
    """Raised when a YAML configuration file is syntactically incorrect."""

    pass


class ConfigValidationError(ConfigurationError):
    """Raised when the configuration fails structural validation (e.g., Pydantic)."""

    pass


class DuplicateNameError(ConfigurationError):
    """Raised when two resources resolve to the same logical or derived name."""

    pass


class PortNetworkError(ConfigurationError):
    """Raised when a port has neither 'self_network' nor an explicit 'network_id'."""

    pass


# --- 2. Errors related to the declaration graph and its registries ---
class DefinitionError(OSNetBuilderError):
    """Base class for logical errors in the declaration graph or its lookups."""

    pass


class NotFoundError(DefinitionError):
    """Raised when a logical name or declaration is not known."""

    pass


class CircularDependencyError(DefinitionError):
    """Raised when a cycle is detected while ordering declarations."""

    pass


class RegistrySealedError(DefinitionError):
    """Raised when a registry is written to after assembly finished."""

    pass


# --- 3. Errors that occur while the engine materializes resources ---
class ProvisioningError(OSNetBuilderError):
    """Base class for errors reported by the provisioning engine."""

    pass


class EngineRejectedError(ProvisioningError):
    """Raised by an engine when it refuses a single declaration."""

    pass


class ProvisioningFailure(ProvisioningError):
    """
    Raised once assembly settles with at least one failed declaration.

    The resolved part of the topology is kept: ``outputs`` holds the
    identifiers that did resolve (``None`` elsewhere) and ``state`` is the
    full build state for inspection.
    """

    def __init__(
        self,
        failed: Dict[str, str],
        chains: Dict[str, List[str]],
        cancelled: List[str],
        outputs: Optional[Any] = None,
        state: Optional[Any] = None,
    ):
        self.failed = failed
        self.chains = chains
        self.cancelled = cancelled
        self.outputs = outputs
        self.state = state
        super().__init__(self._format())

    def _format(self) -> str:
        lines = [f"{len(self.failed)} declaration(s) failed to provision:"]
        for name, reason in self.failed.items():
            chain = " -> ".join(self.chains.get(name, [name]))
            lines.append(f"  - {name}: {reason} (chain: {chain})")
        if self.cancelled:
            lines.append(f"Cancelled dependents: {', '.join(self.cancelled)}")
        return "\n".join(lines)
