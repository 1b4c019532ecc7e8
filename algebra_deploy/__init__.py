__version__ = "0.1.0"

from algebra_deploy.core import (
    AddressPredictor,
    AddressRecord,
    AddressRecordStore,
    DeploymentSequencer,
    DeploymentStage,
    DeploymentState,
    deploy_core,
)

__all__ = [
    "__version__",
    "AddressPredictor",
    "AddressRecord",
    "AddressRecordStore",
    "DeploymentSequencer",
    "DeploymentStage",
    "DeploymentState",
    "deploy_core",
]
