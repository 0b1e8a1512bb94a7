"""
Deployment Errors
Fatal error kinds raised while deploying a presigned transaction
"""

from typing import Optional


class DeployError(Exception):
    """Base class for errors that abort a deployment run"""


class ConfigurationError(DeployError):
    """Required settings are missing or malformed"""


class DecodeError(DeployError):
    """The signed transaction blob could not be decoded"""


class FundingError(DeployError):
    """The transfer funding the signer account did not succeed"""

    def __init__(self, status: str):
        super().__init__(f"Funding failed: {status}")
        self.status = status


class SubmissionError(DeployError):
    """The presigned transaction did not reach SUCCESS"""

    def __init__(self, status: str, transaction_id: Optional[str] = None):
        super().__init__(f"Contract deployment failed with status: {status}")
        self.status = status
        self.transaction_id = transaction_id
