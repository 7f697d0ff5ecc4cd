"""EVM and Stellar handler sets and the routers in front of them."""

from accessindex.handlers.dispatch import EvmDispatcher, StellarDispatcher
from accessindex.handlers.evm import EvmHandlerSet
from accessindex.handlers.stellar import StellarHandlerSet

__all__ = [
    "EvmDispatcher",
    "EvmHandlerSet",
    "StellarDispatcher",
    "StellarHandlerSet",
]
