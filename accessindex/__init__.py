"""accessindex: OpenZeppelin access-control indexer for EVM and Stellar.

Normalizes role, ownership and admin-transfer events from 28 EVM chains and
the Stellar network into one entity schema:

  - AccessControlEvent: append-only log of every observed event
  - RoleMembership: current role holders (revoke deletes)
  - ContractOwnership: current and pending owner
  - Contract: running ACCESS_CONTROL / OWNABLE classification
"""

__version__ = "0.1.0"
__description__ = "OpenZeppelin access-control indexer for EVM and Stellar networks"

from accessindex.core.indexer import Indexer, IngestStats
from accessindex.cli.app import app as cli

__all__ = ["Indexer", "IngestStats", "cli", "__version__"]
