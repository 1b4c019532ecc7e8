from algebra_deploy.core.clients.ChainClient import (
    ChainClient,
    FinalizedTransaction,
    Web3ChainClient,
)

__all__ = [
    "ChainClient",
    "FinalizedTransaction",
    "Web3ChainClient",
]
