from enum import Enum

# --- Log and Debug ---
# Short aliases for module names to keep CLI/env concise
LOG_ALIAS_MAP = {
    "graph": "osnetbuilder.builder.graph",
    "grf": "osnetbuilder.builder.graph",
    "assemble": "osnetbuilder.builder.assemble",
    "asm": "osnetbuilder.builder.assemble",
    "map": "osnetbuilder.builder.map",
    "naming": "osnetbuilder.naming",
    "name": "osnetbuilder.naming",
    "rty": "osnetbuilder.registry",
    "registry": "osnetbuilder.registry",
    "conf": "osnetbuilder.config",
    "engine": "osnetbuilder.engines",
    "mem": "osnetbuilder.engines.memory",
    "topo": "osnetbuilder.topology",
}

# Top-level modules within osnetbuilder for auto-prefixing
KNOWN_TOP_MODULES = {
    "builder",
    "engines",
    "datacls",
    "utils",
    "exceptions",
    "config",
    "naming",
    "registry",
    "topology",
}

LOG_LEVELS_ENV = "OSNB_LOG_LEVELS"

# Per-declaration chatter stays quiet under --debug unless asked for;
# [Graph] and [Assembler] debug lines are kept.
DEFAULT_LOG_LEVELS = {
    "naming": "INFO",
    "rty": "INFO",
    "mem": "INFO",
}


# --- Naming ---
NAME_SEPARATOR = "-"
INTERFACE_SUFFIX = "if"


class Role(str, Enum):
    """Name roles, the middle segment of every derived resource name."""
    ROUTER = "router"
    NETWORK = "net"
    SUBNET = "subnet"
    PORT = "port"
    ROUTE = "route"


class ResourceKind(str, Enum):
    """Resource kinds submitted to the provisioning engine."""
    ROUTER = "router"
    NETWORK = "network"
    SUBNET = "subnet"
    PORT = "port"
    ROUTER_INTERFACE = "router_interface"
    ROUTER_ROUTE = "router_route"


# --- Component ---
COMPONENT_TYPE = "osnetbuilder:openstack:Network"


# --- Property keys computed by the builder, never accepted from configuration ---
ROUTER_ID = "router_id"
NETWORK_ID = "network_id"
SUBNET_ID = "subnet_id"
PORT_ID = "port_id"
NAME = "name"

RESERVED_ROUTER_KEYS = {NAME}
RESERVED_NETWORK_KEYS = {NAME}
RESERVED_SUBNET_KEYS = {NAME, NETWORK_ID}
RESERVED_PORT_KEYS = {NAME}
RESERVED_ROUTE_KEYS = {ROUTER_ID}


# --- Graph rendering ---
KIND_COLORS = {
    ResourceKind.ROUTER: "#ffe0b2",
    ResourceKind.NETWORK: "#e8f4ff",
    ResourceKind.SUBNET: "#d6eaff",
    ResourceKind.PORT: "#e0f2e9",
    ResourceKind.ROUTER_INTERFACE: "#f0f0f0",
    ResourceKind.ROUTER_ROUTE: "#fff8c4",
}
