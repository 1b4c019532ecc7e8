from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from algebra_deploy.core.clients.ChainClient import ChainClient
from algebra_deploy.core.deployment.errors import NonceResolutionError


@dataclass(frozen=True)
class PredictedAddress:
    deployer: str
    base_nonce: int
    offset: int
    address: str

    @property
    def nonce(self) -> int:
        return self.base_nonce + self.offset


class AddressPredictor:
    """Predicts CREATE addresses of deployments the deployer has not sent yet.

    The prediction holds only while nothing else is sent from ``deployer``
    between ``predict`` and the deployment that consumes ``nonce``.
    """

    def __init__(self, client: ChainClient):
        self.client = client

    async def predict(self, deployer: str, offset: int = 0) -> PredictedAddress:
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise ValueError(f"offset must be a non-negative int, got {offset!r}")
        try:
            base_nonce = await self.client.get_nonce(deployer)
        except Exception as exc:
            raise NonceResolutionError(deployer, exc) from exc

        address = self.client.compute_address(deployer, base_nonce + offset)
        logger.info(
            f"Predicted address {address} for nonce {base_nonce + offset} "
            f"(current {base_nonce} + {offset})"
        )
        return PredictedAddress(
            deployer=deployer, base_nonce=base_nonce, offset=offset, address=address
        )
