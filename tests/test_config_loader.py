import pytest
from pydantic import ValidationError

from carrier_gateway.utils.config_loader import load_gateway_config

REGISTRY = """
request_timeout_seconds: 2.5
max_attempts: 4
carriers:
  acme:
    auth_endpoint_env: ACME_AUTH
    handshake_endpoint_env: ACME_HANDSHAKE
    policy_endpoint_env: ACME_POLICIES
  partial:
    auth_endpoint_env: PARTIAL_AUTH
    handshake_endpoint_env: PARTIAL_HANDSHAKE
    policy_endpoint_env: PARTIAL_POLICIES
    auth_scheme: ""
"""


@pytest.fixture
def registry_path(tmp_path):
    path = tmp_path / "carriers.yml"
    path.write_text(REGISTRY, encoding="utf-8")
    return path


def test_resolves_endpoints_from_environment(registry_path):
    environ = {
        "ACME_AUTH": "https://acme.test/auth",
        "ACME_HANDSHAKE": "https://acme.test/handshake",
        "ACME_POLICIES": "https://acme.test/policies",
        "PORT": "8080",
    }

    config = load_gateway_config(registry_path, environ=environ)

    assert config.port == 8080
    assert config.request_timeout_seconds == 2.5
    assert config.max_attempts == 4
    acme = config.get_carrier("acme")
    assert acme.auth_endpoint == "https://acme.test/auth"
    assert acme.policy_endpoint == "https://acme.test/policies"
    assert acme.auth_scheme == "Bearer"


def test_carrier_with_missing_endpoint_is_not_served(registry_path):
    environ = {"PARTIAL_AUTH": "https://p.test/auth", "PARTIAL_HANDSHAKE": "https://p.test/hs"}

    config = load_gateway_config(registry_path, environ=environ)

    assert config.get_carrier("partial") is None
    assert config.get_carrier("acme") is None
    assert config.port == 3000


def test_config_is_immutable(registry_path):
    config = load_gateway_config(registry_path, environ={})

    with pytest.raises(ValidationError):
        config.port = 1


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_gateway_config(tmp_path / "nope.yml", environ={})


def test_invalid_registry_raises(tmp_path):
    path = tmp_path / "carriers.yml"
    path.write_text("max_attempts: 0\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_gateway_config(path, environ={})


def test_default_registry_lists_known_carriers():
    config = load_gateway_config(
        environ={
            "AUTH_ENDPOINT": "https://mock.test/auth",
            "HANDSHAKE_ENDPOINT": "https://mock.test/handshake",
            "POLICIES_ENDPOINT": "https://mock.test/policies",
        }
    )

    assert config.get_carrier("mock-carrier").auth_scheme == ""
    assert config.get_carrier("other-carrier") is None
