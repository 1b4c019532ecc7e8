#!/usr/bin/env python3

# Allow running as a script: `python algebra_deploy/run_deploy.py ...`
if __name__ == "__main__" and __package__ is None:
    import sys
    from pathlib import Path

    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import argparse
import asyncio
import sys

from loguru import logger

from algebra_deploy.core.clients.ChainClient import Web3ChainClient
from algebra_deploy.core.config import get_record_path, load_config, resolve_project_path
from algebra_deploy.core.constants.chains import resolve_chain_id
from algebra_deploy.core.deployment.orchestrator import (
    PlannedStep,
    deploy_core,
    plan_deployment,
)
from algebra_deploy.core.deployment.record import AddressRecordStore


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Deploy AlgebraFactory, AlgebraPoolDeployer, AlgebraCommunityVault "
        "and AlgebraVaultFactoryStub, then record their addresses.",
    )
    p.add_argument("--config", default=None, help="Path to config.json")
    p.add_argument(
        "--record",
        default=None,
        help="Address record to update (default: deploy.record_path or deploys.json)",
    )
    p.add_argument("--artifacts-dir", default=None, help="Hardhat artifacts directory")
    p.add_argument(
        "--chain",
        "--chain-id",
        dest="chain",
        default=None,
        help="Chain id or name (default: deploy.chain_id)",
    )
    p.add_argument(
        "--wallet-label",
        default=None,
        help="Wallet label of the deployer (default: deploy.wallet_label or deployer)",
    )
    p.add_argument("--confirmations", type=int, default=None)
    p.add_argument(
        "--deployer",
        default=None,
        help="Deployer address for --dry-run; no private key needed",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the nonce and predicted address of every step, send nothing",
    )
    p.add_argument("--debug", action="store_true")
    return p


def _print_plan(planned: list[PlannedStep]) -> int:
    for step in planned:
        target = step.predicted_address or "-"
        print(f"nonce {step.nonce:>6}  {step.label:40}  {target}")
    return 0


async def _run(args: argparse.Namespace) -> int:
    chain_id = resolve_chain_id(args.chain) if args.chain else None
    if args.deployer:
        if not args.dry_run:
            raise ValueError("--deployer only works with --dry-run")
        client = Web3ChainClient.read_only(
            args.deployer, chain_id=chain_id, artifacts_dir=args.artifacts_dir
        )
        logger.info(f"Planning for {client.deployer} on chain {client.chain_id}")
        return _print_plan(await plan_deployment(client, client.deployer))

    client = Web3ChainClient.from_config(
        chain_id=chain_id,
        wallet_label=args.wallet_label,
        artifacts_dir=args.artifacts_dir,
        confirmations=args.confirmations,
    )
    logger.info(f"Deploying from {client.deployer} on chain {client.chain_id}")

    if args.dry_run:
        return _print_plan(await plan_deployment(client, client.deployer))

    record_path = resolve_project_path(args.record) if args.record else get_record_path()
    state = await deploy_core(client, client.deployer, AddressRecordStore(record_path))
    for key, address in state.record_updates().items():
        print(f"{key}: {address}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.debug else "INFO")

    try:
        load_config(args.config, require_exists=bool(args.config))
        return asyncio.run(_run(args))
    except Exception as exc:
        if args.debug:
            logger.exception("Deployment failed")
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
