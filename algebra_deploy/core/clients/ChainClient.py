from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from eth_account import Account
from eth_utils import to_checksum_address
from loguru import logger

from algebra_deploy.core.config import (
    get_artifacts_dir,
    get_chain_id,
    get_confirmations,
    get_deployer_private_key,
    get_receipt_timeout,
    get_wallet_label,
)
from algebra_deploy.core.utils.addresses import compute_create_address
from algebra_deploy.core.utils.contracts import (
    ArtifactStore,
    build_deploy_transaction,
    encode_call,
)
from algebra_deploy.core.utils.transaction import (
    get_pending_nonce,
    make_sign_callback,
    send_transaction,
    wait_for_transaction_receipt,
)


@dataclass(frozen=True)
class FinalizedTransaction:
    tx_hash: str
    block_number: int
    contract_address: str | None = None


class ChainClient(Protocol):
    """What the deployment pipeline needs from a chain."""

    async def get_nonce(self, identity: str) -> int: ...

    def compute_address(self, identity: str, nonce: int) -> str: ...

    async def submit_deployment(
        self, artifact: str, constructor_args: list[Any], *, nonce: int
    ) -> str: ...

    async def wait_for_finality(self, handle: str) -> FinalizedTransaction: ...

    async def submit_call(
        self,
        target: str,
        method: str,
        args: list[Any],
        *,
        artifact: str,
        nonce: int,
    ) -> str: ...


class Web3ChainClient:
    def __init__(
        self,
        *,
        chain_id: int,
        deployer: str,
        sign_callback: Callable | None,
        artifacts: ArtifactStore,
        confirmations: int = 1,
        receipt_timeout: int = 180,
    ):
        self.chain_id = int(chain_id)
        self.deployer = to_checksum_address(deployer)
        self.sign_callback = sign_callback
        self.artifacts = artifacts
        self.confirmations = confirmations
        self.receipt_timeout = receipt_timeout

    @classmethod
    def from_config(
        cls,
        *,
        chain_id: int | None = None,
        wallet_label: str | None = None,
        artifacts_dir: str | None = None,
        confirmations: int | None = None,
    ) -> Web3ChainClient:
        chain_id = chain_id if chain_id is not None else get_chain_id()
        if chain_id is None:
            raise ValueError("No chain id: set deploy.chain_id in config or pass --chain-id")
        label = wallet_label or get_wallet_label()
        private_key = get_deployer_private_key(label)
        if not private_key:
            raise ValueError(
                f"No private key for wallet '{label}' "
                "(add it to config.json wallets or set DEPLOYER_PRIVATE_KEY)"
            )
        if confirmations is None:
            confirmations = get_confirmations()
        elif confirmations < 1:
            raise ValueError("confirmations must be >= 1")
        account = Account.from_key(private_key)
        return cls(
            chain_id=chain_id,
            deployer=account.address,
            sign_callback=make_sign_callback(private_key),
            artifacts=ArtifactStore(artifacts_dir or get_artifacts_dir()),
            confirmations=confirmations,
            receipt_timeout=get_receipt_timeout(),
        )

    @classmethod
    def read_only(
        cls,
        deployer: str,
        *,
        chain_id: int | None = None,
        artifacts_dir: str | None = None,
    ) -> Web3ChainClient:
        """Client that can read nonces and predict addresses but never signs."""
        chain_id = chain_id if chain_id is not None else get_chain_id()
        if chain_id is None:
            raise ValueError("No chain id: set deploy.chain_id in config or pass --chain-id")
        return cls(
            chain_id=chain_id,
            deployer=deployer,
            sign_callback=None,
            artifacts=ArtifactStore(artifacts_dir or get_artifacts_dir()),
            receipt_timeout=get_receipt_timeout(),
        )

    async def get_nonce(self, identity: str) -> int:
        return await get_pending_nonce(self.chain_id, identity)

    def compute_address(self, identity: str, nonce: int) -> str:
        return compute_create_address(identity, nonce)

    async def submit_deployment(
        self, artifact: str, constructor_args: list[Any], *, nonce: int
    ) -> str:
        compiled = self.artifacts.load(artifact)
        tx = build_deploy_transaction(
            compiled,
            constructor_args,
            from_address=self.deployer,
            chain_id=self.chain_id,
        )
        logger.debug(f"Deploying {artifact} with args {constructor_args} at nonce {nonce}")
        return await send_transaction(tx, self.sign_callback, nonce=nonce)

    async def wait_for_finality(self, handle: str) -> FinalizedTransaction:
        receipt = await wait_for_transaction_receipt(
            self.chain_id,
            handle,
            timeout=self.receipt_timeout,
            confirmations=self.confirmations,
        )
        contract_address = receipt.get("contractAddress")
        return FinalizedTransaction(
            tx_hash=handle,
            block_number=int(receipt["blockNumber"]),
            contract_address=(
                to_checksum_address(contract_address) if contract_address else None
            ),
        )

    async def submit_call(
        self,
        target: str,
        method: str,
        args: list[Any],
        *,
        artifact: str,
        nonce: int,
    ) -> str:
        compiled = self.artifacts.load(artifact)
        tx = encode_call(
            target=target,
            abi=compiled.abi,
            fn_name=method,
            args=args,
            from_address=self.deployer,
            chain_id=self.chain_id,
        )
        logger.debug(f"Calling {artifact}.{method}{tuple(args)} on {target} at nonce {nonce}")
        return await send_transaction(tx, self.sign_callback, nonce=nonce)
