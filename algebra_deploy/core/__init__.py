from algebra_deploy.core.deployment.orchestrator import deploy_core
from algebra_deploy.core.deployment.predictor import AddressPredictor
from algebra_deploy.core.deployment.record import AddressRecord, AddressRecordStore
from algebra_deploy.core.deployment.sequencer import DeploymentSequencer
from algebra_deploy.core.deployment.state import DeploymentStage, DeploymentState

__all__ = [
    "AddressPredictor",
    "AddressRecord",
    "AddressRecordStore",
    "DeploymentSequencer",
    "DeploymentStage",
    "DeploymentState",
    "deploy_core",
]
