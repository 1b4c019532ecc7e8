from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from algebra_deploy.core.constants.base import RECORD_KEYS
from algebra_deploy.core.deployment.errors import InvalidTransitionError


class DeploymentStage(StrEnum):
    IDLE = "IDLE"
    FACTORY_DEPLOYED = "FACTORY_DEPLOYED"
    POOL_DEPLOYER_DEPLOYED = "POOL_DEPLOYER_DEPLOYED"
    VAULT_DEPLOYED = "VAULT_DEPLOYED"
    STUB_DEPLOYED = "STUB_DEPLOYED"
    WIRED = "WIRED"
    PERSISTED = "PERSISTED"


STAGE_ORDER: tuple[DeploymentStage, ...] = tuple(DeploymentStage)


@dataclass
class DeploymentState:
    """Progress of one run. Each transition requires the previous stage to be final."""

    deployer: str
    base_nonce: int
    predicted_pool_deployer: str
    stage: DeploymentStage = DeploymentStage.IDLE
    addresses: dict[str, str] = field(default_factory=dict)
    tx_hashes: dict[DeploymentStage, str] = field(default_factory=dict)

    def next_stage(self) -> DeploymentStage | None:
        idx = STAGE_ORDER.index(self.stage)
        if idx + 1 >= len(STAGE_ORDER):
            return None
        return STAGE_ORDER[idx + 1]

    def advance(
        self,
        stage: DeploymentStage,
        *,
        record_key: str | None = None,
        address: str | None = None,
        tx_hash: str | None = None,
    ) -> None:
        expected = self.next_stage()
        if stage != expected:
            raise InvalidTransitionError(
                f"Cannot move from {self.stage} to {stage} (expected {expected})"
            )
        if record_key is not None:
            if not address:
                raise InvalidTransitionError(f"{stage} requires an address")
            self.addresses[record_key] = address
        if tx_hash:
            self.tx_hashes[stage] = tx_hash
        self.stage = stage

    def reached(self, stage: DeploymentStage) -> bool:
        return STAGE_ORDER.index(self.stage) >= STAGE_ORDER.index(stage)

    def nonce_for(self, offset: int) -> int:
        return self.base_nonce + offset

    def record_updates(self) -> dict[str, str]:
        if not self.reached(DeploymentStage.WIRED):
            raise InvalidTransitionError(
                f"Addresses are not final before {DeploymentStage.WIRED} (at {self.stage})"
            )
        return {key: self.addresses[key] for key in RECORD_KEYS}
