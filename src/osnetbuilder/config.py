import yaml
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Set, Union
from pydantic import BaseModel, Field, ValidationError, model_validator, ConfigDict
from pydantic.networks import IPvAnyAddress, IPvAnyNetwork

from . import constants
from .exceptions import (
    ConfigParsingError,
    ConfigFileMissingError,
    ConfigValidationError,
    ConfigurationError,
)


logger = logging.getLogger(__name__)


def _reject_reserved(model: BaseModel, reserved: Set[str], what: str) -> None:
    """Computed properties may not be supplied through extra keys."""
    extras = set((model.model_extra or {}).keys())
    clash = sorted(extras & reserved)
    if clash:
        raise ConfigurationError(
            f"{what} must not set {clash}; these properties are computed by the builder."
        )


class RouterSpec(BaseModel):
    """
        Class Config-Validation Model describe `router`
    """
    admin_state_up: Optional[bool] = None
    external_network_id: Optional[str] = None
    enable_snat: Optional[bool] = None
    distributed: Optional[bool] = None
    description: Optional[str] = None
    # other provider router properties, forwarded unchecked
    model_config = ConfigDict(extra="allow", frozen=True)

    @model_validator(mode='after')
    def check_reserved(self) -> 'RouterSpec':
        _reject_reserved(self, constants.RESERVED_ROUTER_KEYS, "Router")
        return self


class NetworkProperties(BaseModel):
    """
        Class Config-Validation Model describe `network`
    """
    admin_state_up: Optional[bool] = None
    mtu: Optional[int] = None
    shared: Optional[bool] = None
    port_security_enabled: Optional[bool] = None
    description: Optional[str] = None
    model_config = ConfigDict(extra="allow", frozen=True)

    @model_validator(mode='after')
    def check_reserved(self) -> 'NetworkProperties':
        _reject_reserved(self, constants.RESERVED_NETWORK_KEYS, "Network")
        return self


class SubnetSpec(BaseModel):
    """
        Class Config-Validation Model describe one entry of `subnets`

    `name` is the logical name used for naming and lookup. When omitted the
    subnet is named by its position in the list.
    """
    logical_name: Optional[str] = Field(None, alias='name')
    cidr: IPvAnyNetwork
    ip_version: Optional[int] = None
    gateway_ip: Optional[IPvAnyAddress] = None
    enable_dhcp: Optional[bool] = None
    dns_nameservers: Optional[List[str]] = None
    allocation_pools: Optional[List[Dict[str, str]]] = None
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    @model_validator(mode='after')
    def check_ip_version(self) -> 'SubnetSpec':
        """ip_version must agree with the CIDR family; infer it when missing"""
        _reject_reserved(self, constants.RESERVED_SUBNET_KEYS, f"Subnet '{self.logical_name or self.cidr}'")
        family = self.cidr.version
        if self.ip_version is None:
            object.__setattr__(self, 'ip_version', family)
        elif self.ip_version != family:
            raise ConfigurationError(
                f"Subnet '{self.logical_name or self.cidr}' declares ip_version {self.ip_version} "
                f"but its cidr is IPv{family}."
            )
        gateway = self.gateway_ip
        if gateway is not None and (gateway.version != family or gateway not in self.cidr):
            raise ConfigurationError(
                f"Gateway '{self.gateway_ip}' of subnet '{self.logical_name or self.cidr}' is not inside '{self.cidr}'."
            )
        return self


class PortSpec(BaseModel):
    """
        Class Config-Validation Model describe one entry of `additional_ports`
    """
    logical_name: str = Field(alias='name')
    self_network: bool = False
    network_id: Optional[str] = None
    fixed_ips: Optional[List[Dict[str, Any]]] = None
    admin_state_up: Optional[bool] = None
    security_group_ids: Optional[List[str]] = None
    description: Optional[str] = None
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    @model_validator(mode='after')
    def check_reserved(self) -> 'PortSpec':
        _reject_reserved(self, constants.RESERVED_PORT_KEYS, f"Port '{self.logical_name}'")
        return self


class RouteSpec(BaseModel):
    """
        Class Config-Validation Model describe one entry of `routes`

    `description` only labels the derived resource name and is never sent to
    the provisioning engine.
    """
    description: Optional[str] = None
    destination_cidr: IPvAnyNetwork
    next_hop: IPvAnyAddress
    model_config = ConfigDict(extra="allow", frozen=True)

    @model_validator(mode='after')
    def check_reserved(self) -> 'RouteSpec':
        _reject_reserved(self, constants.RESERVED_ROUTE_KEYS, f"Route '{self.description or self.destination_cidr}'")
        if self.destination_cidr.version != self.next_hop.version:
            raise ConfigurationError(
                f"Route '{self.description or self.destination_cidr}' mixes IPv{self.destination_cidr.version} "
                f"destination with IPv{self.next_hop.version} next hop."
            )
        return self


class NetworkTopologySpec(BaseModel):
    """
        Class Config-Validation Model desribe top-level of config

    `name` is the base name, the uniqueness scope of every derived name.
    """
    name: str
    router: RouterSpec = Field(default_factory=RouterSpec)
    network: NetworkProperties = Field(default_factory=NetworkProperties)
    subnets: List[SubnetSpec] = Field(default_factory=list)
    additional_ports: List[PortSpec] = Field(default_factory=list)
    routes: List[RouteSpec] = Field(default_factory=list)
    model_config = ConfigDict(frozen=True)


ConfigModel = NetworkTopologySpec


class Config:
    """
    Loads and validates the topology YAML file using Pydantic models.
    It is the sole gatekeeper for configuration.
    """
    def __init__(self, config_path: Optional[Union[str, Path]] = None, data: Optional[Dict[str, Any]] = None):
        self.path = str(config_path) if config_path is not None else None
        if data is None:
            if self.path is None:
                raise ConfigurationError("Either a configuration path or configuration data is required.")
            logger.info(f"Loading configuration from '{self.path}'...")
            data = self._load_raw_config()

        logger.info("Validating configuration structure with Pydantic...")
        try:
            self.model = ConfigModel.model_validate(data)
            logger.debug(f"Configuration model validated successfully: \n{self.model.model_dump_json(indent=2)}")
            logger.info("Configuration validation passed.")
        except ValidationError as e:
            raise ConfigValidationError(f"Configuration validation failed:\n{e}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        return cls(data=data)

    def _load_raw_config(self) -> Dict[str, Any]:
        try:
            content = Path(self.path).read_text(encoding='utf-8')
            config_data = yaml.safe_load(content)
            if not isinstance(config_data, dict):
                raise ConfigParsingError("Configuration file must be a YAML document containing a dictionary.")
            logger.debug(f"Successfully parsed YAML from '{self.path}'.")
            return config_data
        except FileNotFoundError:
            raise ConfigFileMissingError(f"Configuration file not found at: {self.path}")
        except yaml.YAMLError as e:
            raise ConfigParsingError(f"Error parsing YAML file: {e}")

    @property
    def name(self) -> str:
        return self.model.name

    @property
    def spec(self) -> NetworkTopologySpec:
        return self.model
