"""
Presigned Contract Deployer
Funds the signer's implicit account, submits the presigned contract creation
and reports the resulting contract address
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from hollow_deploy.config import DeployConfig, tinybars_to_hbar
from hollow_deploy.errors import FundingError, SubmissionError
from hollow_deploy.transaction import (
    SignedTransaction,
    compute_contract_address,
    decode_signed_transaction,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FollowUpRead:
    """Outcome of the informational nonce read after deployment. Never fatal."""

    ok: bool
    nonce: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DeploymentResult:
    network: str
    signer: str
    funded_hbar: Decimal
    nonce_before: int
    contract_address: str
    transaction_id: str
    explorer_url: str
    follow_up: FollowUpRead
    code_size: Optional[int] = None


class PresignedDeployer:
    def __init__(self, config: DeployConfig, ledger):
        self.config = config
        self.ledger = ledger

    def decode(self) -> SignedTransaction:
        """Decode the configured signed transaction"""
        signed = decode_signed_transaction(self.config.signed_tx)
        logger.info(f"Signer (from presigned tx): {signed.sender}")
        if not signed.is_contract_creation:
            logger.warning(f"Presigned transaction is a call to {signed.to}, not a contract creation")
        return signed

    async def ensure_hollow_funded(self, signer: str, min_tinybars: int) -> Tuple[object, int]:
        """Make sure the implicit account behind ``signer`` holds at least ``min_tinybars``.

        Returns the account reference and the number of tinybars transferred
        (zero when the account was already funded).
        """
        account = self.ledger.alias_account(signer)

        try:
            current = await self.ledger.get_balance(account)
            exists = True
        except Exception as e:
            logger.info(f"No account found for {signer} yet ({e}), it will be created by funding")
            current = 0
            exists = False

        if exists and current >= min_tinybars:
            logger.info(
                f"Hollow account already exists with sufficient balance: "
                f"{tinybars_to_hbar(current)} ℏ (>= {tinybars_to_hbar(min_tinybars)} ℏ)."
            )
            return account, 0

        top_up = min_tinybars - current
        logger.info(f"Funding hollow (alias) account {signer} with {tinybars_to_hbar(top_up)} ℏ...")

        receipt = await self.ledger.transfer_hbar(account, top_up)
        if not receipt.succeeded:
            raise FundingError(receipt.status)

        logger.info(f"Hollow account funded/created ({receipt.transaction_id}).")
        return account, top_up

    async def read_nonce(self, signer: str) -> int:
        return await self.ledger.get_ethereum_nonce(signer)

    async def submit(self, raw_tx: bytes):
        """Submit the presigned transaction; raise SubmissionError unless it succeeds"""
        logger.info("Submitting presigned Ethereum transaction (contract creation)...")
        receipt = await self.ledger.submit_ethereum_transaction(
            raw_tx, self.config.max_gas_allowance_tinybars
        )
        logger.info(f"Transaction status: {receipt.status}")
        if not receipt.succeeded:
            raise SubmissionError(receipt.status, receipt.transaction_id)
        return receipt

    async def follow_up_nonce(self, signer: str) -> FollowUpRead:
        """Read the signer nonce again from the mirror node. Failures are logged, not raised."""
        try:
            nonce = await self.ledger.mirror_ethereum_nonce(signer)
        except Exception as e:
            logger.warning(f"Could not read signer nonce after deployment: {e}")
            return FollowUpRead(ok=False, error=str(e))
        logger.info(f"Signer ethereumNonce AFTER deployment: {nonce}")
        return FollowUpRead(ok=True, nonce=nonce)

    async def check_code(self, contract_address: str) -> Optional[int]:
        """Best-effort bytecode size at the contract address, or None when unavailable"""
        try:
            code = await self.ledger.get_code(contract_address)
        except Exception as e:
            logger.warning(f"Could not fetch code at {contract_address}: {e}")
            return None
        if not code:
            logger.warning(f"No code visible at {contract_address} yet")
        return len(code)

    async def deploy(self) -> DeploymentResult:
        logger.info(f"Network: {self.config.network}")
        signed = self.decode()

        _, funded = await self.ensure_hollow_funded(
            signed.sender, self.config.min_hollow_balance_tinybars
        )

        # Must be read before submission: the create address depends on it
        nonce_before = await self.read_nonce(signed.sender)
        logger.info(f"Signer ethereumNonce BEFORE deployment: {nonce_before}")
        if signed.nonce != nonce_before:
            logger.warning(
                f"Presigned transaction uses nonce {signed.nonce} but the signer nonce is {nonce_before}"
            )

        receipt = await self.submit(signed.raw)

        contract_address = compute_contract_address(signed.sender, nonce_before)
        logger.info(f"Contract deployed at {contract_address}")

        follow_up = await self.follow_up_nonce(signed.sender)
        code_size = await self.check_code(contract_address)

        return DeploymentResult(
            network=self.config.network,
            signer=signed.sender,
            funded_hbar=tinybars_to_hbar(funded),
            nonce_before=nonce_before,
            contract_address=contract_address,
            transaction_id=receipt.transaction_id,
            explorer_url=self.config.explorer_url(receipt.transaction_id),
            follow_up=follow_up,
            code_size=code_size,
        )
