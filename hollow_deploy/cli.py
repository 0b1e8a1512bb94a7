"""
Deployment Entry Point
Loads configuration, runs the deployer and converts fatal errors into an exit code
"""

import argparse
import asyncio
import logging
import os
from typing import List, Optional

from hollow_deploy.config import load_config
from hollow_deploy.deployer import PresignedDeployer
from hollow_deploy.errors import DeployError
from hollow_deploy.ledger import HederaLedger

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(os.getenv('DEPLOY_LOG_FILE', 'hollow_deploy.log')),
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Deploy a presigned contract creation through Hedera')
    parser.add_argument('--network', choices=['mainnet', 'testnet', 'previewnet'],
                        help='Network preset (overrides HEDERA_NETWORK)')
    parser.add_argument('--min-balance', help='Minimum signer balance in HBAR (overrides MIN_HOLLOW_BALANCE_HBAR)')
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None, env=None, ledger_cls=HederaLedger) -> int:
    """Run one deployment; returns the process exit code"""
    args = parse_args(argv)

    try:
        config = load_config(env, network=args.network, min_balance=args.min_balance)
    except DeployError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    ledger = ledger_cls(config)
    try:
        await ledger.initialize()
        result = await PresignedDeployer(config, ledger).deploy()
    except DeployError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1
    finally:
        ledger.close()

    print(f"Contract deployed on {result.network} by {result.signer}")
    print(f"Contract Address: {result.contract_address}")
    print(f"Transaction ID  : {result.transaction_id}")
    print(f"Explorer: {result.explorer_url}")
    print("Done.")
    return 0


def run(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    try:
        return asyncio.run(main(argv))
    except KeyboardInterrupt:
        logger.info("Deployment interrupted by user")
        return 1
