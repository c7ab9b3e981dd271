"""
Resource Registries

Logical name -> ResourceHandle lookups filled in by the assembler while the
topology materializes. One registry exists per interface-bearing kind, so a
subnet and a port may share a logical name.
"""

from typing import Dict, Generic, List, Optional, TypeVar, TYPE_CHECKING
import logging

from .exceptions import DuplicateNameError, NotFoundError, RegistrySealedError

if TYPE_CHECKING:
    from .datacls.resources import ResourceHandle

logger = logging.getLogger(__name__)

K = TypeVar('K')
V = TypeVar('V')


class Registry(Generic[K, V]):
    """
    A write-once mapping. Every key is registered at most once and the
    registry refuses writes after ``seal()``.
    """

    # --- Configuration: To be defined by subclasses ---
    label: str = "item"

    def __init__(self):
        self._registry: Dict[K, V] = {}
        self._sealed = False
        logger.debug(f"Initialized {self.__class__.__name__}")

    def register(self, key: K, value: V):
        if self._sealed:
            raise RegistrySealedError(
                f"{self.__class__.__name__} is sealed; cannot register {self.label} '{key}'."
            )
        if key in self._registry:
            raise DuplicateNameError(f"Duplicate {self.label} name '{key}' in {self.__class__.__name__}.")
        self._registry[key] = value
        logger.debug(f"[Registry] {self.__class__.__name__}: {key} -> {value!r}")

    def lookup(self, key: K) -> V:
        try:
            return self._registry[key]
        except KeyError:
            known = ", ".join(str(k) for k in self._registry) or "<none>"
            raise NotFoundError(f"Unknown {self.label} '{key}'{self._where()}. Known: {known}.") from None

    def _where(self) -> str:
        return ""

    def get(self, key: K) -> Optional[V]:
        return self._registry.get(key)

    def seal(self):
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def registry(self) -> Dict[K, V]:
        return dict(self._registry)

    def names(self) -> List[K]:
        return list(self._registry.keys())

    def handles(self) -> List[V]:
        return list(self._registry.values())

    def __contains__(self, key: object) -> bool:
        return key in self._registry

    def __len__(self) -> int:
        return len(self._registry)


class ResourceRegistry(Registry[str, "ResourceHandle"]):
    """
    Registry of provisioned subnets or ports keyed by logical name.
    """

    def __init__(self, kind: str, scope: Optional[str] = None):
        self.kind = kind
        self.scope = scope
        self.label = kind
        super().__init__()

    def _where(self) -> str:
        return f" in component '{self.scope}'" if self.scope else ""

    def id_of(self, key: str) -> str:
        return self.lookup(key).id

    def ids(self) -> List[str]:
        return [h.id for h in self._registry.values()]

    def __repr__(self) -> str:
        return f"ResourceRegistry(kind={self.kind!r}, names={self.names()!r})"
