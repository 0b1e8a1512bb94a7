"""
Signed Transaction Decoding
Recovers the signer of a presigned Ethereum transaction and computes the
address of the contract it creates
"""

from dataclasses import dataclass
from typing import List, Optional, Union

import rlp
from rlp.exceptions import DecodingError
from eth_account import Account
from eth_utils import decode_hex, keccak, to_canonical_address, to_checksum_address

from hollow_deploy.errors import DecodeError

# Position of the `to` field in the RLP payload of each typed envelope
_TYPED_TO_INDEX = {
    0x01: 4,  # access list
    0x02: 5,  # dynamic fee
    0x03: 5,  # blob
    0x04: 5,  # set code
}


@dataclass(frozen=True)
class SignedTransaction:
    """Metadata read from a signed transaction blob. The blob itself is kept verbatim."""

    raw: bytes
    sender: str
    nonce: int
    to: Optional[str]
    chain_id: Optional[int]
    tx_type: int
    tx_hash: str

    @property
    def is_contract_creation(self) -> bool:
        return self.to is None


def _to_bytes(raw_tx: Union[str, bytes]) -> bytes:
    if isinstance(raw_tx, bytes):
        return raw_tx
    try:
        return decode_hex(raw_tx)
    except (ValueError, TypeError) as e:
        raise DecodeError(f"Signed transaction is not valid hex: {e}") from e


def _be_int(value: bytes) -> int:
    return int.from_bytes(value, "big") if value else 0


def _optional_address(value: bytes) -> Optional[str]:
    return to_checksum_address(value) if value else None


def _decode_fields(data: bytes) -> List:
    try:
        fields = rlp.decode(data)
    except DecodingError as e:
        raise DecodeError(f"Malformed RLP in signed transaction: {e}") from e
    if not isinstance(fields, list):
        raise DecodeError("Signed transaction payload is not an RLP list")
    return fields


def recover_signer(raw_tx: Union[str, bytes]) -> str:
    """Return the checksummed sender address of a signed transaction.

    Recovery always goes through ``eth_account``, which understands legacy
    (including pre-EIP-155) and typed envelopes alike.
    """
    data = _to_bytes(raw_tx)
    try:
        sender = Account.recover_transaction(data)
    except Exception as e:
        raise DecodeError(f"Cannot derive signer (from) address from signed transaction: {e}") from e
    if not sender:
        raise DecodeError("Cannot derive signer (from) address from signed transaction.")
    return to_checksum_address(sender)


def decode_signed_transaction(raw_tx: Union[str, bytes]) -> SignedTransaction:
    """Decode sender, nonce, recipient and chain id from a signed transaction"""
    data = _to_bytes(raw_tx)
    if not data:
        raise DecodeError("Signed transaction is empty")

    if data[0] >= 0xC0:
        fields = _decode_fields(data)
        if len(fields) != 9:
            raise DecodeError(f"Legacy transaction must have 9 fields, got {len(fields)}")
        tx_type = 0
        nonce = _be_int(fields[0])
        to = _optional_address(fields[3])
        v = _be_int(fields[6])
        chain_id = (v - 35) // 2 if v >= 35 else None
    elif data[0] in _TYPED_TO_INDEX:
        tx_type = data[0]
        fields = _decode_fields(data[1:])
        to_index = _TYPED_TO_INDEX[tx_type]
        if len(fields) <= to_index:
            raise DecodeError(f"Type {tx_type} transaction is missing fields")
        chain_id = _be_int(fields[0])
        nonce = _be_int(fields[1])
        to = _optional_address(fields[to_index])
    else:
        raise DecodeError(f"Unsupported transaction type: 0x{data[0]:02x}")

    return SignedTransaction(
        raw=data,
        sender=recover_signer(data),
        nonce=nonce,
        to=to,
        chain_id=chain_id,
        tx_type=tx_type,
        tx_hash="0x" + keccak(data).hex(),
    )


def compute_contract_address(sender: str, nonce: int) -> str:
    """Address of the contract created by ``sender`` at ``nonce``: keccak(rlp([sender, nonce]))[12:]"""
    if nonce < 0:
        raise ValueError("Nonce must be non-negative")
    encoded = rlp.encode([to_canonical_address(sender), nonce])
    return to_checksum_address(keccak(encoded)[12:])
