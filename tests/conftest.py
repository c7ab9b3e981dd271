import copy

import pytest
import yaml
from pathlib import Path

from osnetbuilder.config import NetworkTopologySpec

DEMO_CONFIG = {
    'name': 'demo',
    'router': {'external_network_id': 'ext-net'},
    'network': {'mtu': 1450},
    'subnets': [
        {'name': 'a', 'cidr': '10.0.0.0/24'},
    ],
    'routes': [
        {'description': 'default', 'destination_cidr': '0.0.0.0/0', 'next_hop': '10.0.0.254'},
    ],
}

FULL_CONFIG = {
    'name': 'prod',
    'router': {'admin_state_up': True},
    'subnets': [
        {'name': 'web', 'cidr': '10.10.1.0/24', 'gateway_ip': '10.10.1.1'},
        {'name': 'db', 'cidr': '10.10.2.0/24'},
        {'name': 'v6', 'cidr': 'fd00:10::/64'},
    ],
    'additional_ports': [
        {'name': 'vip', 'self_network': True, 'fixed_ips': [{'ip_address': '10.10.1.50'}]},
        {'name': 'uplink', 'network_id': 'ext-net-42'},
    ],
    'routes': [
        {'description': 'default', 'destination_cidr': '0.0.0.0/0', 'next_hop': '10.10.1.254'},
        {'description': 'backup', 'destination_cidr': '192.168.0.0/16', 'next_hop': '10.10.2.254'},
    ],
}


@pytest.fixture
def demo_config() -> dict:
    return copy.deepcopy(DEMO_CONFIG)


@pytest.fixture
def full_config() -> dict:
    return copy.deepcopy(FULL_CONFIG)


@pytest.fixture
def demo_spec(demo_config) -> NetworkTopologySpec:
    return NetworkTopologySpec.model_validate(demo_config)


@pytest.fixture
def full_spec(full_config) -> NetworkTopologySpec:
    return NetworkTopologySpec.model_validate(full_config)


@pytest.fixture
def create_config_file(tmp_path: Path):
    """A pytest fixture to create a temporary network.yml file."""
    def _create_file(config_data: dict) -> Path:
        config_file = tmp_path / "network.yml"
        with open(config_file, 'w') as f:
            yaml.dump(config_data, f)
        return config_file
    return _create_file
