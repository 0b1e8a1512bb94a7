"""Deploy presigned Ethereum contract creations through Hedera."""

from hollow_deploy.config import DeployConfig, load_config
from hollow_deploy.deployer import DeploymentResult, FollowUpRead, PresignedDeployer
from hollow_deploy.errors import (
    ConfigurationError,
    DecodeError,
    DeployError,
    FundingError,
    SubmissionError,
)
from hollow_deploy.transaction import (
    SignedTransaction,
    compute_contract_address,
    decode_signed_transaction,
    recover_signer,
)

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "DeployConfig",
    "DeployError",
    "DeploymentResult",
    "FollowUpRead",
    "FundingError",
    "PresignedDeployer",
    "SignedTransaction",
    "SubmissionError",
    "compute_contract_address",
    "decode_signed_transaction",
    "load_config",
    "recover_signer",
]
