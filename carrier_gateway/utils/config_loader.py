"""
Configuration loader for the carrier gateway
"""

import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from carrier_gateway.integrations.contracts.policy import CarrierConfig

logger = logging.getLogger(__name__)


class CarrierEntry(BaseModel):
    """Environment variable names for one carrier's endpoints"""

    auth_endpoint_env: str
    handshake_endpoint_env: str
    policy_endpoint_env: str
    auth_scheme: str = "Bearer"


class CarrierRegistry(BaseModel):
    """Contents of config/carriers.yml"""

    port_env: str = "PORT"
    default_port: int = Field(default=3000, ge=1, le=65535)
    request_timeout_seconds: float = Field(default=5.0, gt=0.0)
    max_attempts: int = Field(default=3, ge=1, le=10)
    carriers: Dict[str, CarrierEntry] = Field(default_factory=dict)


class GatewayConfig(BaseModel):
    """Resolved gateway configuration, built once at startup"""

    model_config = ConfigDict(frozen=True)

    port: int = 3000
    request_timeout_seconds: float = 5.0
    max_attempts: int = 3
    carriers: Dict[str, CarrierConfig] = Field(default_factory=dict)

    def get_carrier(self, carrier_id: str) -> Optional[CarrierConfig]:
        return self.carriers.get(carrier_id)


def resolve_carriers(registry: CarrierRegistry, environ: Mapping[str, str]) -> Dict[str, CarrierConfig]:
    """Look up each carrier's endpoints; carriers with a missing endpoint are skipped."""
    resolved: Dict[str, CarrierConfig] = {}
    for carrier_id, entry in registry.carriers.items():
        endpoints = {
            "auth_endpoint": environ.get(entry.auth_endpoint_env, "").strip(),
            "handshake_endpoint": environ.get(entry.handshake_endpoint_env, "").strip(),
            "policy_endpoint": environ.get(entry.policy_endpoint_env, "").strip(),
        }
        missing = [name for name, value in endpoints.items() if not value]
        if missing:
            logger.warning("Carrier '%s' is not configured; missing %s", carrier_id, ", ".join(missing))
            continue
        resolved[carrier_id] = CarrierConfig(auth_scheme=entry.auth_scheme, **endpoints)
        logger.info("Carrier '%s' configured with auth endpoint %s", carrier_id, endpoints["auth_endpoint"])
    return resolved


def load_gateway_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> GatewayConfig:
    """
    Load the carrier registry from YAML and resolve endpoints from the environment

    Args:
        config_path: Path to registry file. Defaults to config/carriers.yml
        environ: Variables to resolve from. Defaults to os.environ

    Returns:
        Validated GatewayConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config" / "carriers.yml"
    if environ is None:
        environ = os.environ

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        registry = CarrierRegistry(**data)
    except ValidationError as e:
        logger.error("Carrier registry validation failed: %s", e)
        raise

    raw_port = environ.get(registry.port_env, "").strip()
    config = GatewayConfig(
        port=int(raw_port) if raw_port else registry.default_port,
        request_timeout_seconds=registry.request_timeout_seconds,
        max_attempts=registry.max_attempts,
        carriers=resolve_carriers(registry, environ),
    )
    logger.info("Successfully loaded gateway config from %s (%d carriers)", config_path, len(config.carriers))
    return config
