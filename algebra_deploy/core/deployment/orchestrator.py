from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from algebra_deploy.core.clients.ChainClient import ChainClient
from algebra_deploy.core.constants.base import POOL_DEPLOYER_NONCE_OFFSET
from algebra_deploy.core.deployment.predictor import AddressPredictor, PredictedAddress
from algebra_deploy.core.deployment.record import AddressRecordStore
from algebra_deploy.core.deployment.sequencer import (
    DEPLOYMENT_PLAN,
    DeploymentSequencer,
)
from algebra_deploy.core.deployment.state import DeploymentStage, DeploymentState


@dataclass(frozen=True)
class PlannedStep:
    label: str
    nonce: int
    predicted_address: str | None = None


def _log_recovery(state: DeploymentState | None) -> None:
    if state is None or not state.addresses:
        return
    logger.error(
        f"Run stopped at {state.stage}; these contracts are already on-chain "
        "and were NOT written to the address record:"
    )
    for key, address in state.addresses.items():
        logger.error(f"  {key}: {address}")


async def plan_deployment(client: ChainClient, deployer: str) -> list[PlannedStep]:
    """Nonce and CREATE address each step would use if the run started now."""
    predicted = await AddressPredictor(client).predict(deployer, POOL_DEPLOYER_NONCE_OFFSET)
    planned = []
    for step in DEPLOYMENT_PLAN:
        nonce = predicted.base_nonce + step.nonce_offset
        address = None if step.method else client.compute_address(deployer, nonce)
        planned.append(PlannedStep(step.label, nonce, address))
    return planned


async def deploy_core(
    client: ChainClient,
    deployer: str,
    store: AddressRecordStore,
) -> DeploymentState:
    """Deploy, wire, and record the core contracts. Raises on any failure."""
    # Fail on a missing/malformed record before anything is sent.
    store.load()

    predicted: PredictedAddress = await AddressPredictor(client).predict(
        deployer, POOL_DEPLOYER_NONCE_OFFSET
    )
    logger.info(
        f"Deployer {deployer} at nonce {predicted.base_nonce}; "
        f"pool deployer expected at {predicted.address}"
    )

    sequencer = DeploymentSequencer(client)
    try:
        state = await sequencer.run(predicted)
    except Exception:
        _log_recovery(sequencer.state)
        raise

    updates = state.record_updates()
    try:
        store.merge(updates)
        store.save()
    except Exception:
        _log_recovery(state)
        raise

    state.advance(DeploymentStage.PERSISTED)
    for key, address in updates.items():
        logger.info(f"{key}: {address}")
    return state
