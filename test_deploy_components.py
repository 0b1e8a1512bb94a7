"""
Component tests for configuration, transaction decoding and key parsing
"""

from decimal import Decimal

import pytest
import rlp
from eth_account import Account
from eth_utils import decode_hex, is_checksum_address

from hollow_deploy.config import load_bundled_signed_tx, load_config
from hollow_deploy.errors import ConfigurationError, DecodeError
from hollow_deploy.ledger import LedgerReceipt, parse_operator_key
from hollow_deploy.transaction import (
    compute_contract_address,
    decode_signed_transaction,
    recover_signer,
)

MULTICALL3_DEPLOYER = "0x05f32b3cc3888453ff71b01135b34ff8e41263f2"
MULTICALL3_ADDRESS = "0xca11bde05977b3631167028862be2a173976ca11"
TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

BASE_ENV = {"OPERATOR_ID": "0.0.1001", "OPERATOR_KEY": "302e020100300506032b657004220420" + "11" * 32}


def _raw(signed) -> bytes:
    return bytes(getattr(signed, "raw_transaction", None) or signed.rawTransaction)


# Transaction decoding

def test_recover_signer_from_bundled_multicall3_transaction():
    sender = recover_signer(load_bundled_signed_tx())
    assert sender.lower() == MULTICALL3_DEPLOYER
    assert is_checksum_address(sender)


def test_decoding_same_blob_twice_is_identical():
    blob = load_bundled_signed_tx()
    assert decode_signed_transaction(blob) == decode_signed_transaction(blob)
    assert recover_signer(blob) == recover_signer(blob)


def test_decode_reports_legacy_contract_creation():
    blob = load_bundled_signed_tx()
    signed = decode_signed_transaction(blob)

    assert signed.tx_type == 0
    assert signed.nonce == 0
    assert signed.chain_id is None
    assert signed.is_contract_creation
    assert signed.raw == decode_hex(blob)
    assert signed.tx_hash.startswith("0x") and len(signed.tx_hash) == 66


def test_decode_dynamic_fee_transaction():
    account = Account.from_key(TEST_KEY)
    signed = Account.sign_transaction(
        {
            "type": 2,
            "chainId": 296,
            "nonce": 7,
            "maxFeePerGas": 2_000_000_000_000,
            "maxPriorityFeePerGas": 0,
            "gas": 100_000,
            "to": "0x" + "11" * 20,
            "value": 0,
            "data": "0x",
        },
        TEST_KEY,
    )

    decoded = decode_signed_transaction(_raw(signed))

    assert decoded.sender == account.address
    assert decoded.tx_type == 2
    assert decoded.nonce == 7
    assert decoded.chain_id == 296
    assert decoded.to.lower() == "0x" + "11" * 20
    assert not decoded.is_contract_creation


def test_decode_eip155_legacy_transaction_chain_id():
    signed = Account.sign_transaction(
        {
            "chainId": 296,
            "nonce": 3,
            "gasPrice": 1_000_000_000_000,
            "gas": 21_000,
            "to": "0x" + "22" * 20,
            "value": 1,
            "data": "0x",
        },
        TEST_KEY,
    )

    decoded = decode_signed_transaction(_raw(signed))

    assert decoded.chain_id == 296
    assert decoded.nonce == 3
    assert decoded.sender == Account.from_key(TEST_KEY).address


@pytest.mark.parametrize("blob", ["0x", "0x1234", "0xzz", "0xc0"])
def test_decode_rejects_malformed_blobs(blob):
    with pytest.raises(DecodeError):
        decode_signed_transaction(blob)


def test_decode_rejects_truncated_blob():
    blob = load_bundled_signed_tx()
    with pytest.raises(DecodeError):
        decode_signed_transaction(blob[:-20])


def test_recover_signer_rejects_zeroed_signature():
    fields = rlp.decode(decode_hex(load_bundled_signed_tx()))
    fields[7] = b""
    fields[8] = b""
    with pytest.raises(DecodeError):
        recover_signer(rlp.encode(fields))


# Create-address formula

def test_contract_address_matches_multicall3_deployment():
    assert compute_contract_address(MULTICALL3_DEPLOYER, 0).lower() == MULTICALL3_ADDRESS


@pytest.mark.parametrize(
    "nonce, expected",
    [
        (0, "0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d"),
        (1, "0x343c43a37d37dff08ae8c4a11544c718abb4fcf8"),
        (2, "0xf778b86fa74e846c4f0a1fbd1335fe81c00a0c91"),
        (3, "0xfffd933a0bc612844eaf0c6fe3e5b8e9b6c1d19c"),
    ],
)
def test_contract_address_reference_vectors(nonce, expected):
    address = compute_contract_address("0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0", nonce)
    assert address.lower() == expected
    assert is_checksum_address(address)


def test_contract_address_rejects_negative_nonce():
    with pytest.raises(ValueError):
        compute_contract_address(MULTICALL3_DEPLOYER, -1)


# Configuration

def test_load_config_defaults():
    config = load_config(dict(BASE_ENV))

    assert config.network == "testnet"
    assert config.max_gas_allowance_hbar == Decimal("10")
    assert config.max_gas_allowance_tinybars == 1_000_000_000
    assert config.min_hollow_balance_tinybars == 100_000_000
    assert config.signed_tx == load_bundled_signed_tx()
    assert config.mirror_url == "https://testnet.mirrornode.hedera.com"
    assert config.rpc_url == "https://testnet.hashio.io/api"


@pytest.mark.parametrize("missing", ["OPERATOR_ID", "OPERATOR_KEY"])
def test_load_config_requires_operator_credentials(missing):
    env = dict(BASE_ENV)
    del env[missing]
    with pytest.raises(ConfigurationError):
        load_config(env)


def test_load_config_network_is_case_insensitive_and_overridable():
    config = load_config({**BASE_ENV, "HEDERA_NETWORK": "MainNet"})
    assert config.network == "mainnet"

    config = load_config({**BASE_ENV, "HEDERA_NETWORK": "mainnet"}, network="previewnet")
    assert config.network == "previewnet"


def test_load_config_rejects_unknown_network():
    with pytest.raises(ConfigurationError):
        load_config({**BASE_ENV, "HEDERA_NETWORK": "devnet"})


@pytest.mark.parametrize("value", ["ten", "0", "-5", "NaN"])
def test_load_config_rejects_invalid_gas_allowance(value):
    with pytest.raises(ConfigurationError):
        load_config({**BASE_ENV, "MAX_GAS_ALLOWANCE_HBAR": value})


def test_load_config_accepts_fractional_amounts():
    config = load_config({**BASE_ENV, "MAX_GAS_ALLOWANCE_HBAR": "2.5"}, min_balance="0.25")
    assert config.max_gas_allowance_tinybars == 250_000_000
    assert config.min_hollow_balance_tinybars == 25_000_000


@pytest.mark.parametrize("blob", ["f90f53", "0x123", "0xnothex"])
def test_load_config_rejects_non_hex_signed_tx(blob):
    with pytest.raises(ConfigurationError):
        load_config({**BASE_ENV, "SIGNED_TX": blob})


def test_explorer_url_uses_network_preset():
    config = load_config({**BASE_ENV, "HEDERA_NETWORK": "previewnet"})
    assert config.explorer_url("0.0.1001@1700000000.000000001") == (
        "https://hashscan.io/previewnet/transaction/0.0.1001@1700000000.000000001"
    )


def test_config_repr_hides_operator_key():
    config = load_config(dict(BASE_ENV))
    assert BASE_ENV["OPERATOR_KEY"] not in repr(config)


# Operator key parsing

class FakePrivateKey:
    def __init__(self, accept):
        self.accept = accept

    def from_string_ecdsa(self, value):
        if "ecdsa" not in self.accept:
            raise ValueError("not secp256k1")
        return ("ecdsa", value)

    def from_string_ed25519(self, value):
        if "ed25519" not in self.accept:
            raise ValueError("not ed25519")
        return ("ed25519", value)


def test_parse_operator_key_prefers_ecdsa():
    assert parse_operator_key("k", FakePrivateKey({"ecdsa", "ed25519"})) == ("ecdsa", "k")


def test_parse_operator_key_falls_back_to_ed25519():
    assert parse_operator_key("k", FakePrivateKey({"ed25519"})) == ("ed25519", "k")


def test_parse_operator_key_fails_when_no_curve_matches():
    with pytest.raises(ConfigurationError):
        parse_operator_key("k", FakePrivateKey(set()))


def test_ledger_receipt_success_flag():
    assert LedgerReceipt("SUCCESS", "0.0.1@1.1").succeeded
    assert not LedgerReceipt("CONTRACT_REVERT_EXECUTED", "0.0.1@1.1").succeeded


@pytest.mark.parametrize("value", ["0.000000001", "1.123456789"])
def test_load_config_rejects_fractions_of_a_tinybar(value):
    with pytest.raises(ConfigurationError):
        load_config(dict(BASE_ENV), min_balance=value)


def test_load_config_accepts_one_tinybar():
    config = load_config({**BASE_ENV, "MIN_HOLLOW_BALANCE_HBAR": "0.00000001"})
    assert config.min_hollow_balance_tinybars == 1
