"""
Hedera Ledger Integration
Wraps the Hedera SDK client, the mirror node REST API and the JSON-RPC relay
behind one handle used by the deployer
"""

import logging
from dataclasses import dataclass
from typing import Any

import aiohttp
from web3 import Web3

from hollow_deploy.config import DeployConfig
from hollow_deploy.errors import ConfigurationError

logger = logging.getLogger(__name__)

SUCCESS = "SUCCESS"


@dataclass(frozen=True)
class LedgerReceipt:
    status: str
    transaction_id: str

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS


def parse_operator_key(raw_key: str, private_key_cls: Any = None):
    """Parse the operator key as ECDSA (secp256k1), falling back to Ed25519"""
    if private_key_cls is None:
        from hiero_sdk_python import PrivateKey  # pragma: no cover - lazy import

        private_key_cls = PrivateKey

    try:
        return private_key_cls.from_string_ecdsa(raw_key)
    except Exception as ecdsa_error:
        logger.debug(f"Operator key is not ECDSA ({ecdsa_error}), trying Ed25519")
    try:
        return private_key_cls.from_string_ed25519(raw_key)
    except Exception as e:
        raise ConfigurationError(f"OPERATOR_KEY is neither an ECDSA nor an Ed25519 key: {e}") from e


def _status_name(status: Any) -> str:
    from hiero_sdk_python import ResponseCode  # pragma: no cover - lazy import

    try:
        return ResponseCode(status).name
    except ValueError:
        return str(status)


class HederaLedger:
    def __init__(self, config: DeployConfig):
        self.config = config
        self.client = None
        self.operator_id = None
        self.operator_key = None
        self.web3 = None

    async def initialize(self):
        """Create the SDK client and set the operator"""
        from hiero_sdk_python import AccountId, Client, Network  # pragma: no cover - lazy import

        try:
            self.operator_key = parse_operator_key(self.config.operator_key)
            self.operator_id = AccountId.from_string(self.config.operator_id)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid OPERATOR_ID {self.config.operator_id!r}: {e}") from e

        try:
            self.client = Client(Network(network=self.config.network))
            self.client.set_operator(self.operator_id, self.operator_key)
            self.web3 = Web3(Web3.HTTPProvider(self.config.rpc_url))

            logger.info(f"Hedera client initialized for {self.config.network}")
            logger.info(f"Operator: {self.operator_id}")

        except Exception as e:
            logger.error(f"Failed to initialize Hedera client: {e}")
            raise

    def alias_account(self, evm_address: str):
        """Account reference for the implicit account behind an EVM address"""
        from hiero_sdk_python import AccountId  # pragma: no cover - lazy import

        return AccountId.from_evm_address(
            evm_address, self.operator_id.shard, self.operator_id.realm
        )

    async def get_balance(self, account) -> int:
        """Get account balance in tinybars. Raises when the account does not exist."""
        from hiero_sdk_python import CryptoGetAccountBalanceQuery  # pragma: no cover - lazy import

        balance = (
            CryptoGetAccountBalanceQuery()
            .set_account_id(account)
            .execute(self.client)
        )
        return int(balance.hbars.to_tinybars())

    async def transfer_hbar(self, target, tinybars: int) -> LedgerReceipt:
        """Transfer tinybars from the operator to target and wait for the receipt"""
        from hiero_sdk_python import TransferTransaction  # pragma: no cover - lazy import

        try:
            tx = (
                TransferTransaction()
                .add_hbar_transfer(self.operator_id, -tinybars)
                .add_hbar_transfer(target, tinybars)
                .freeze_with(self.client)
                .sign(self.operator_key)
            )
            receipt = tx.execute(self.client)
            return LedgerReceipt(_status_name(receipt.status), str(tx.transaction_id))
        except Exception as e:
            logger.error(f"Failed to transfer HBAR to {target}: {e}")
            raise

    async def get_ethereum_nonce(self, evm_address: str) -> int:
        """Get the transaction count of an EVM address through the JSON-RPC relay"""
        try:
            return int(self.web3.eth.get_transaction_count(Web3.to_checksum_address(evm_address)))
        except Exception as e:
            logger.error(f"Failed to get ethereum nonce for {evm_address}: {e}")
            raise

    async def submit_ethereum_transaction(self, raw_tx: bytes, max_gas_allowance_tinybars: int) -> LedgerReceipt:
        """Submit a presigned Ethereum transaction and wait for the receipt"""
        from hiero_sdk_python import EthereumTransaction  # pragma: no cover - lazy import

        try:
            tx = (
                EthereumTransaction()
                .set_ethereum_data(raw_tx)
                .set_max_gas_allowed(max_gas_allowance_tinybars)
                .freeze_with(self.client)
            )
            receipt = tx.execute(self.client)
            return LedgerReceipt(_status_name(receipt.status), str(tx.transaction_id))
        except Exception as e:
            logger.error(f"Failed to submit Ethereum transaction: {e}")
            raise

    async def mirror_ethereum_nonce(self, evm_address: str) -> int:
        """Get the ethereum nonce of an account as seen by the mirror node"""
        url = f"{self.config.mirror_url}/api/v1/accounts/{evm_address}"
        async with aiohttp.ClientSession() as session:
            async with session.get(url) as response:
                if response.status == 404:
                    raise LookupError(f"Mirror node has no account for {evm_address}")
                response.raise_for_status()
                data = await response.json()
        return int(data["ethereum_nonce"])

    async def get_code(self, address: str) -> bytes:
        """Get deployed bytecode through the JSON-RPC relay"""
        try:
            return bytes(self.web3.eth.get_code(Web3.to_checksum_address(address)))
        except Exception as e:
            logger.error(f"Failed to get code at {address}: {e}")
            raise

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None
