from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from algebra_deploy.core.clients.ChainClient import ChainClient, FinalizedTransaction
from algebra_deploy.core.constants.base import (
    ARTIFACT_FACTORY,
    ARTIFACT_POOL_DEPLOYER,
    ARTIFACT_VAULT,
    ARTIFACT_VAULT_FACTORY_STUB,
    POOL_DEPLOYER_NONCE_OFFSET,
    RECORD_KEY_FACTORY,
    RECORD_KEY_POOL_DEPLOYER,
    RECORD_KEY_VAULT,
    RECORD_KEY_VAULT_FACTORY,
    SET_VAULT_FACTORY_METHOD,
)
from algebra_deploy.core.deployment.errors import (
    AddressMismatchError,
    DeploymentError,
    DeploymentFailedError,
)
from algebra_deploy.core.deployment.predictor import PredictedAddress
from algebra_deploy.core.deployment.state import DeploymentStage, DeploymentState
from algebra_deploy.core.utils.addresses import same_address


@dataclass(frozen=True)
class DeploymentStep:
    stage: DeploymentStage
    artifact: str
    nonce_offset: int
    record_key: str | None = None
    method: str | None = None

    @property
    def label(self) -> str:
        if self.method:
            return f"{self.artifact}.{self.method}"
        return self.artifact


FACTORY_STEP = DeploymentStep(
    DeploymentStage.FACTORY_DEPLOYED, ARTIFACT_FACTORY, 0, RECORD_KEY_FACTORY
)
POOL_DEPLOYER_STEP = DeploymentStep(
    DeploymentStage.POOL_DEPLOYER_DEPLOYED,
    ARTIFACT_POOL_DEPLOYER,
    POOL_DEPLOYER_NONCE_OFFSET,
    RECORD_KEY_POOL_DEPLOYER,
)
VAULT_STEP = DeploymentStep(
    DeploymentStage.VAULT_DEPLOYED, ARTIFACT_VAULT, 2, RECORD_KEY_VAULT
)
VAULT_FACTORY_STUB_STEP = DeploymentStep(
    DeploymentStage.STUB_DEPLOYED,
    ARTIFACT_VAULT_FACTORY_STUB,
    3,
    RECORD_KEY_VAULT_FACTORY,
)
WIRE_VAULT_FACTORY_STEP = DeploymentStep(
    DeploymentStage.WIRED, ARTIFACT_FACTORY, 4, method=SET_VAULT_FACTORY_METHOD
)

DEPLOYMENT_PLAN: tuple[DeploymentStep, ...] = (
    FACTORY_STEP,
    POOL_DEPLOYER_STEP,
    VAULT_STEP,
    VAULT_FACTORY_STUB_STEP,
    WIRE_VAULT_FACTORY_STEP,
)


class DeploymentSequencer:
    """Deploys the core contracts one at a time and wires the vault factory.

    Every transaction is sent with the nonce ``base_nonce + step.nonce_offset``
    and awaited to finality before the next one is sent.
    """

    def __init__(self, client: ChainClient):
        self.client = client
        self.state: DeploymentState | None = None

    async def run(self, predicted: PredictedAddress) -> DeploymentState:
        if predicted.offset != POOL_DEPLOYER_NONCE_OFFSET:
            raise ValueError(
                f"Pool deployer prediction must use offset {POOL_DEPLOYER_NONCE_OFFSET}, "
                f"got {predicted.offset}"
            )

        state = DeploymentState(
            deployer=predicted.deployer,
            base_nonce=predicted.base_nonce,
            predicted_pool_deployer=predicted.address,
        )
        self.state = state

        factory = await self._deploy(state, FACTORY_STEP, [predicted.address])

        pool_deployer = await self._deploy(state, POOL_DEPLOYER_STEP, [factory])
        if not same_address(pool_deployer, predicted.address):
            raise AddressMismatchError(predicted.address, pool_deployer, state)

        vault = await self._deploy(state, VAULT_STEP, [factory, predicted.deployer])
        stub = await self._deploy(state, VAULT_FACTORY_STUB_STEP, [vault])

        await self._wire(state, WIRE_VAULT_FACTORY_STEP, factory, [stub])
        return state

    async def _finalize(
        self,
        state: DeploymentState,
        step: DeploymentStep,
        submit: Callable[[], Awaitable[str]],
    ) -> FinalizedTransaction:
        try:
            handle = await submit()
            return await self.client.wait_for_finality(handle)
        except DeploymentError:
            raise
        except Exception as exc:
            raise DeploymentFailedError(step.label, exc, state) from exc

    async def _deploy(
        self, state: DeploymentState, step: DeploymentStep, args: list[Any]
    ) -> str:
        nonce = state.nonce_for(step.nonce_offset)
        finalized = await self._finalize(
            state,
            step,
            lambda: self.client.submit_deployment(step.artifact, args, nonce=nonce),
        )
        if not finalized.contract_address:
            raise DeploymentFailedError(
                step.label,
                RuntimeError(f"no contract address in receipt of {finalized.tx_hash}"),
                state,
            )
        state.advance(
            step.stage,
            record_key=step.record_key,
            address=finalized.contract_address,
            tx_hash=finalized.tx_hash,
        )
        logger.info(f"{step.artifact} deployed to: {finalized.contract_address}")
        return finalized.contract_address

    async def _wire(
        self,
        state: DeploymentState,
        step: DeploymentStep,
        target: str,
        args: list[Any],
    ) -> None:
        nonce = state.nonce_for(step.nonce_offset)
        finalized = await self._finalize(
            state,
            step,
            lambda: self.client.submit_call(
                target, step.method, args, artifact=step.artifact, nonce=nonce
            ),
        )
        state.advance(step.stage, tx_hash=finalized.tx_hash)
        logger.info(f"{step.label}({', '.join(map(str, args))}) confirmed: {finalized.tx_hash}")
