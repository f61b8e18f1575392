"""Network policy selection for linked-deployments library."""

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .constants import NETWORK_CONFIG, NETWORK_POLICIES
from .exceptions import MissingEnvValueError, PlanFormatError, UnknownNetworkError
from .types import PolicyConfig


def select_policy(
    network_id: str, policies: Optional[Mapping[str, Mapping[str, Any]]] = None
) -> PolicyConfig:
    """
    Produce the concrete policy for a network.

    Pure function of its input: neither the policy table nor any global state
    is modified.

    Args:
        network_id: Network name (e.g. "mainnet", "testnet", "local")
        policies: Policy variants keyed by network id (defaults to NETWORK_POLICIES)

    Returns:
        PolicyConfig for the network

    Raises:
        UnknownNetworkError: If no variant is defined for network_id
    """
    if policies is None:
        policies = NETWORK_POLICIES

    if network_id not in policies:
        raise UnknownNetworkError(
            f"Unknown network '{network_id}' (known: {', '.join(sorted(policies))})"
        )

    variant = policies[network_id]
    return PolicyConfig(
        network=network_id,
        values=dict(variant.get("values", {})),
        optional_units=frozenset(variant.get("optional_units", [])),
    )


def env_var_name(network_id: str, key: str) -> str:
    """
    Environment variable carrying an override for a policy key.

    Uses the network's EIP-3770 short name as prefix when known, e.g.
    ("testnet", "beneficiary") -> "SEP_BENEFICIARY".
    """
    prefix = NETWORK_CONFIG.get(network_id, {}).get("short_name", network_id)
    return f"{prefix}_{key}".upper().replace("-", "_")


def _coerce(raw: str) -> Any:
    # Only plain decimal integers decode; hex addresses and everything else stay strings
    if raw.strip().lstrip("-").isdigit():
        return int(raw)
    return raw


def apply_environment(
    policy: PolicyConfig,
    keys: Optional[Iterable[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> PolicyConfig:
    """
    Overlay environment-supplied values onto a policy.

    Args:
        policy: Policy returned by select_policy()
        keys: Keys to look up (defaults to the keys the policy already defines)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        New PolicyConfig; the input policy is left unchanged
    """
    if environ is None:
        environ = os.environ
    if keys is None:
        keys = policy.values.keys()

    values = dict(policy.values)
    for key in keys:
        name = env_var_name(policy.network, key)
        if name in environ:
            values[key] = _coerce(environ[name])

    return PolicyConfig(
        network=policy.network, values=values, optional_units=policy.optional_units
    )


def lookup_value(policy: PolicyConfig, key: str) -> Any:
    """
    Get the value for an EnvValue key.

    Raises:
        MissingEnvValueError: If the policy does not define the key
    """
    if key not in policy.values:
        raise MissingEnvValueError(
            f"Policy for network '{policy.network}' has no value for '{key}'"
        )
    return policy.values[key]


def load_policies(path: Union[Path, str]) -> Dict[str, Dict[str, Any]]:
    """
    Load policy variants from a JSON file.

    Expected shape: {"<network>": {"values": {...}, "optional_units": [...]}}

    Raises:
        PlanFormatError: If the document is not a mapping of network variants
    """
    with open(path) as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise PlanFormatError(f"Policy file {path} must contain a JSON object")

    for network_id, variant in data.items():
        if not isinstance(variant, dict):
            raise PlanFormatError(f"Policy for network '{network_id}' must be an object")
        if not isinstance(variant.get("values", {}), dict):
            raise PlanFormatError(f"Policy values for network '{network_id}' must be an object")
        if not isinstance(variant.get("optional_units", []), list):
            raise PlanFormatError(
                f"Optional units for network '{network_id}' must be a list"
            )

    return data
