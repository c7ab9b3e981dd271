"""
Resource name derivation.

Every provider-facing name is ``<base>-<role>[-<suffix>]``; router interfaces
append ``-if`` to the name of the subnet or port they attach. Anonymous
subnets and routes fall back to their 1-based position within their own kind,
so subnet ``1`` and route ``1`` never collide.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Union

from . import constants
from .constants import Role
from .exceptions import ConfigurationError, DuplicateNameError

logger = logging.getLogger(__name__)


def derive_name(base_name: str, role: Union[Role, str], suffix: Optional[Union[str, int]] = None) -> str:
    """Compose ``<base>-<role>[-<suffix>]``. Pure and total for valid input."""
    if not base_name or not base_name.strip():
        raise ConfigurationError("Base name must be a non-empty string.")
    try:
        role = Role(role)
    except ValueError:
        raise ConfigurationError(
            f"Unknown name role '{role}', must be one of {[r.value for r in Role]}."
        )
    parts = [base_name, role.value]
    if suffix is not None and str(suffix) != "":
        parts.append(str(suffix))
    return constants.NAME_SEPARATOR.join(parts)


def interface_name(parent_name: str) -> str:
    """Name of the router interface attaching ``parent_name``."""
    return f"{parent_name}{constants.NAME_SEPARATOR}{constants.INTERFACE_SUFFIX}"


class NameGenerator:
    """
    Derives the names of one topology and rejects collisions.

    Each role keeps its own table of issued suffixes, so the same logical
    name may be used once per role. Every derived name, interfaces included,
    is also unique across the whole topology, so subnet ``x-if`` cannot take
    the name of the interface of subnet ``x``. Any clash raises
    ``DuplicateNameError`` before anything is declared.
    """

    def __init__(self, base_name: str):
        if not base_name or not base_name.strip():
            raise ConfigurationError("Base name must be a non-empty string.")
        self.base_name = base_name
        self._issued: Dict[Role, Dict[str, str]] = {}
        self._interfaces: Dict[str, str] = {}
        self._taken: Set[str] = set()

    def router(self) -> str:
        return self._issue(Role.ROUTER, None, "router")

    def network(self) -> str:
        return self._issue(Role.NETWORK, None, "network")

    def subnet(self, logical_name: Optional[str], position: int) -> str:
        return self._issue(Role.SUBNET, self.suffix(logical_name, position), "subnet")

    def port(self, logical_name: str) -> str:
        if not logical_name:
            raise ConfigurationError("Additional ports require a non-empty 'name'.")
        return self._issue(Role.PORT, logical_name, "port")

    def route(self, description: Optional[str], position: int) -> str:
        return self._issue(Role.ROUTE, self.suffix(description, position), "route")

    def interface(self, parent_name: str) -> str:
        """Name of the router interface attaching an already issued subnet or port."""
        name = interface_name(parent_name)
        if name in self._taken:
            raise DuplicateNameError(
                f"Interface of '{parent_name}' in topology '{self.base_name}' collides with an "
                f"existing resource: derived name '{name}' is already taken."
            )
        self._interfaces[parent_name] = name
        self._taken.add(name)
        logger.debug(f"[Naming] interface -> {name}")
        return name

    @staticmethod
    def suffix(label: Optional[str], position: int) -> str:
        """Logical label when given, otherwise the 1-based position."""
        if label:
            return label
        if position < 1:
            raise ConfigurationError(f"Positions are 1-based, got {position}.")
        return str(position)

    def issued(self, role: Union[Role, str]) -> List[str]:
        return list(self._issued.get(Role(role), {}).values())

    def interfaces(self) -> List[str]:
        return list(self._interfaces.values())

    def _issue(self, role: Role, suffix: Optional[str], what: str) -> str:
        table = self._issued.setdefault(role, {})
        key = suffix if suffix is not None else ""
        name = derive_name(self.base_name, role, suffix)
        if key in table or name in self._taken:
            label = f" '{suffix}'" if suffix else ""
            raise DuplicateNameError(
                f"Duplicate {what}{label} in topology '{self.base_name}': "
                f"derived name '{name}' is already taken."
            )
        table[key] = name
        self._taken.add(name)
        logger.debug(f"[Naming] {role.value} -> {name}")
        return name


def check_unique(labels: Iterable[Optional[str]], what: str) -> None:
    """Reject repeated non-empty labels, naming every offender at once."""
    seen = set()
    dupes = []
    for label in labels:
        if not label:
            continue
        if label in seen and label not in dupes:
            dupes.append(label)
        seen.add(label)
    if dupes:
        raise DuplicateNameError(f"Duplicate {what} names found: {', '.join(dupes)}")
