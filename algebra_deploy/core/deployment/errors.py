from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from algebra_deploy.core.deployment.state import DeploymentState


class DeploymentError(RuntimeError):
    pass


class NonceResolutionError(DeploymentError):
    def __init__(self, deployer: str, cause: Exception | None = None):
        self.deployer = deployer
        detail = f": {cause}" if cause else ""
        super().__init__(f"Could not resolve transaction count for {deployer}{detail}")


class InvalidTransitionError(DeploymentError):
    pass


class DeploymentFailedError(DeploymentError):
    def __init__(
        self,
        step: str,
        cause: Exception,
        state: DeploymentState | None = None,
    ):
        self.step = step
        self.state = state
        super().__init__(f"{step} failed: {cause}")


class AddressMismatchError(DeploymentError):
    def __init__(
        self,
        predicted: str,
        actual: str,
        state: DeploymentState | None = None,
    ):
        self.predicted = predicted
        self.actual = actual
        self.state = state
        super().__init__(
            f"Pool deployer landed at {actual} but the factory was built "
            f"with {predicted}; the factory holds a dangling reference"
        )


class RecordStoreError(DeploymentError):
    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")
