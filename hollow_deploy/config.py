"""
Deployment Configuration
Reads operator credentials, network selection and the signed transaction
from the environment into a single DeployConfig
"""

import os
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from hollow_deploy.errors import ConfigurationError

TINYBARS_PER_HBAR = 100_000_000
EXPLORER_HOST = "hashscan.io"
DEFAULT_NETWORK = "testnet"
DEFAULT_MAX_GAS_ALLOWANCE_HBAR = Decimal("10")
DEFAULT_MIN_HOLLOW_BALANCE_HBAR = Decimal("1")

SIGNED_TX_PATH = os.path.join(os.path.dirname(__file__), "data", "multicall3_signed_tx.hex")

# Network presets
NETWORK_CONFIGS: Dict[str, Dict[str, str]] = {
    "mainnet": {
        "mirror": "https://mainnet.mirrornode.hedera.com",
        "rpc": "https://mainnet.hashio.io/api",
        "explorer": "mainnet",
    },
    "testnet": {
        "mirror": "https://testnet.mirrornode.hedera.com",
        "rpc": "https://testnet.hashio.io/api",
        "explorer": "testnet",
    },
    "previewnet": {
        "mirror": "https://previewnet.mirrornode.hedera.com",
        "rpc": "https://previewnet.hashio.io/api",
        "explorer": "previewnet",
    },
}

_HEX_BLOB = re.compile(r"^0x(?:[0-9a-fA-F]{2})+$")


@dataclass(frozen=True)
class DeployConfig:
    operator_id: str
    operator_key: str
    network: str
    max_gas_allowance_hbar: Decimal
    min_hollow_balance_hbar: Decimal
    signed_tx: str
    mirror_url: str
    rpc_url: str

    @property
    def max_gas_allowance_tinybars(self) -> int:
        return hbar_to_tinybars(self.max_gas_allowance_hbar)

    @property
    def min_hollow_balance_tinybars(self) -> int:
        return hbar_to_tinybars(self.min_hollow_balance_hbar)

    def explorer_url(self, transaction_id: str) -> str:
        """Get explorer URL for transaction"""
        segment = NETWORK_CONFIGS[self.network]["explorer"]
        return f"https://{EXPLORER_HOST}/{segment}/transaction/{transaction_id}"

    def __repr__(self) -> str:
        return (
            f"DeployConfig(operator_id={self.operator_id!r}, network={self.network!r}, "
            f"max_gas_allowance_hbar={self.max_gas_allowance_hbar}, "
            f"min_hollow_balance_hbar={self.min_hollow_balance_hbar})"
        )


def hbar_to_tinybars(amount: Decimal) -> int:
    return int(amount * TINYBARS_PER_HBAR)


def tinybars_to_hbar(tinybars: int) -> Decimal:
    return Decimal(tinybars) / TINYBARS_PER_HBAR


def load_bundled_signed_tx() -> str:
    """Load the bundled Multicall3 deployment transaction"""
    with open(SIGNED_TX_PATH, "r") as f:
        return f.read().strip()


def _positive_hbar(env: Mapping[str, str], name: str, default: Decimal) -> Decimal:
    raw = env.get(name)
    if raw in (None, ""):
        return default
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        raise ConfigurationError(f"{name} must be a number of HBAR, got {raw!r}")
    if not value.is_finite() or value <= 0:
        raise ConfigurationError(f"{name} must be greater than zero, got {raw!r}")
    if (value * TINYBARS_PER_HBAR) % 1 != 0:
        raise ConfigurationError(f"{name} must be a whole number of tinybars (8 decimals), got {raw!r}")
    return value


def load_config(env: Optional[Mapping[str, str]] = None,
                network: Optional[str] = None,
                min_balance: Optional[str] = None) -> DeployConfig:
    """Build the deployment configuration.

    ``env`` defaults to ``os.environ`` after loading a ``.env`` file. ``network``
    and ``min_balance`` override the matching environment values.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    operator_id = (env.get("OPERATOR_ID") or "").strip()
    operator_key = (env.get("OPERATOR_KEY") or "").strip()
    if not operator_id or not operator_key:
        raise ConfigurationError("Missing OPERATOR_ID or OPERATOR_KEY in environment.")

    network_name = (network or env.get("HEDERA_NETWORK") or DEFAULT_NETWORK).strip().lower()
    if network_name not in NETWORK_CONFIGS:
        raise ConfigurationError(
            f"Unsupported network: {network_name} (expected one of {', '.join(NETWORK_CONFIGS)})"
        )
    preset = NETWORK_CONFIGS[network_name]

    overrides = dict(env)
    if min_balance is not None:
        overrides["MIN_HOLLOW_BALANCE_HBAR"] = min_balance

    signed_tx = (env.get("SIGNED_TX") or "").strip() or load_bundled_signed_tx()
    if not _HEX_BLOB.match(signed_tx):
        raise ConfigurationError("SIGNED_TX must be a 0x-prefixed hex string.")

    return DeployConfig(
        operator_id=operator_id,
        operator_key=operator_key,
        network=network_name,
        max_gas_allowance_hbar=_positive_hbar(
            overrides, "MAX_GAS_ALLOWANCE_HBAR", DEFAULT_MAX_GAS_ALLOWANCE_HBAR
        ),
        min_hollow_balance_hbar=_positive_hbar(
            overrides, "MIN_HOLLOW_BALANCE_HBAR", DEFAULT_MIN_HOLLOW_BALANCE_HBAR
        ),
        signed_tx=signed_tx,
        mirror_url=(env.get("HEDERA_MIRROR_URL") or preset["mirror"]).rstrip("/"),
        rpc_url=env.get("HEDERA_RPC_URL") or preset["rpc"],
    )
