"""Registry of the networks an indexer deployment can be bound to.

One entry per deployment: 28 EVM chains (mainnets and their testnets) and
the two public Stellar networks. ``start_block`` is the first block or
ledger worth scanning for OpenZeppelin access-control deployments.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

Ecosystem = Literal["evm", "stellar"]
NetworkType = Literal["mainnet", "testnet"]


class UnknownNetworkError(KeyError):
    """Raised when a network id is not in the registry."""


class NetworkConfigBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    ecosystem: Ecosystem
    type: NetworkType
    is_testnet: bool
    explorer_url: str
    start_block: int


class EvmNetworkConfig(NetworkConfigBase):
    ecosystem: Literal["evm"] = "evm"
    chain_id: int
    rpc_url: str


class StellarNetworkConfig(NetworkConfigBase):
    ecosystem: Literal["stellar"] = "stellar"
    network_passphrase: str
    horizon_url: str
    soroban_rpc_url: str


AnyNetworkConfig = Union[EvmNetworkConfig, StellarNetworkConfig]


def _evm(
    id: str,
    name: str,
    type: NetworkType,
    chain_id: int,
    rpc_url: str,
    explorer_url: str,
    start_block: int,
) -> EvmNetworkConfig:
    return EvmNetworkConfig(
        id=id,
        name=name,
        type=type,
        is_testnet=type == "testnet",
        chain_id=chain_id,
        rpc_url=rpc_url,
        explorer_url=explorer_url,
        start_block=start_block,
    )


# ---------------------------------------------------------------------------
# EVM
# ---------------------------------------------------------------------------

EVM_MAINNETS: list[EvmNetworkConfig] = [
    # OZ Contracts v2 (Ownable) release, Dec 2017
    _evm("ethereum-mainnet", "Ethereum", "mainnet", 1,
         "https://ethereum-rpc.publicnode.com", "https://etherscan.io", 4719568),
    _evm("arbitrum-mainnet", "Arbitrum One", "mainnet", 42161,
         "https://arb1.arbitrum.io/rpc", "https://arbiscan.io", 1),
    # earliest OZ AccessControl deployments, Aug 2021
    _evm("polygon-mainnet", "Polygon", "mainnet", 137,
         "https://polygon-rpc.com", "https://polygonscan.com", 17000000),
    _evm("polygon-zkevm-mainnet", "Polygon zkEVM", "mainnet", 1101,
         "https://zkevm-rpc.com", "https://zkevm.polygonscan.com", 1),
    _evm("base-mainnet", "Base", "mainnet", 8453,
         "https://mainnet.base.org", "https://basescan.org", 1),
    _evm("bsc-mainnet", "BNB Smart Chain", "mainnet", 56,
         "https://bsc-dataseed.binance.org", "https://bscscan.com", 3500000),
    _evm("optimism-mainnet", "OP Mainnet", "mainnet", 10,
         "https://mainnet.optimism.io", "https://optimistic.etherscan.io", 1),
    _evm("avalanche-mainnet", "Avalanche C-Chain", "mainnet", 43114,
         "https://api.avax.network/ext/bc/C/rpc", "https://snowscan.xyz", 1),
    _evm("zksync-era-mainnet", "ZkSync Era", "mainnet", 324,
         "https://mainnet.era.zksync.io", "https://explorer.zksync.io", 1),
    _evm("scroll-mainnet", "Scroll", "mainnet", 534352,
         "https://rpc.scroll.io", "https://scrollscan.com", 1),
    _evm("linea-mainnet", "Linea", "mainnet", 59144,
         "https://rpc.linea.build", "https://lineascan.build", 1),
    _evm("polkadot-hub", "Polkadot Hub", "mainnet", 420420419,
         "https://services.polkadothub-rpc.com/mainnet", "https://blockscout.polkadot.io", 1),
    _evm("moonbeam-mainnet", "Moonbeam", "mainnet", 1284,
         "https://rpc.api.moonbeam.network", "https://moonbeam.moonscan.io", 1),
    _evm("moonriver-mainnet", "Moonriver", "mainnet", 1285,
         "https://rpc.api.moonriver.moonbeam.network", "https://moonriver.moonscan.io", 1),
]

EVM_TESTNETS: list[EvmNetworkConfig] = [
    _evm("ethereum-sepolia", "Sepolia", "testnet", 11155111,
         "https://ethereum-sepolia-rpc.publicnode.com", "https://sepolia.etherscan.io", 10200000),
    _evm("arbitrum-sepolia", "Arbitrum Sepolia", "testnet", 421614,
         "https://sepolia-rollup.arbitrum.io/rpc", "https://sepolia.arbiscan.io", 240150000),
    _evm("polygon-amoy", "Polygon Amoy", "testnet", 80002,
         "https://rpc-amoy.polygon.technology", "https://amoy.polygonscan.com", 33360000),
    _evm("polygon-zkevm-cardona", "Polygon zkEVM Cardona", "testnet", 2442,
         "https://rpc.cardona.zkevm-rpc.com", "https://cardona-zkevm.polygonscan.com", 20200000),
    _evm("base-sepolia", "Base Sepolia", "testnet", 84532,
         "https://sepolia.base.org", "https://sepolia.basescan.org", 37290000),
    _evm("bsc-testnet", "BSC Testnet", "testnet", 97,
         "https://data-seed-prebsc-1-s1.binance.org:8545", "https://testnet.bscscan.com", 88720000),
    _evm("optimism-sepolia", "OP Sepolia", "testnet", 11155420,
         "https://sepolia.optimism.io", "https://sepolia-optimism.etherscan.io", 39300000),
    _evm("avalanche-fuji", "Avalanche Fuji C-Chain", "testnet", 43113,
         "https://api.avax-test.network/ext/bc/C/rpc", "https://testnet.snowscan.xyz", 51540000),
    _evm("zksync-era-sepolia", "ZkSync Era Sepolia", "testnet", 300,
         "https://sepolia.era.zksync.dev", "https://sepolia.explorer.zksync.io", 6700000),
    _evm("scroll-sepolia", "Scroll Sepolia", "testnet", 534351,
         "https://sepolia-rpc.scroll.io", "https://sepolia.scrollscan.dev", 16580000),
    _evm("linea-sepolia", "Linea Sepolia", "testnet", 59141,
         "https://rpc.sepolia.linea.build", "https://sepolia.lineascan.build", 24320000),
    _evm("monad-testnet", "Monad Testnet", "testnet", 10143,
         "https://testnet-rpc.monad.xyz", "https://testnet.monadexplorer.com", 10540000),
    _evm("polkadot-hub-testnet", "Polkadot Hub TestNet", "testnet", 420420417,
         "https://services.polkadothub-rpc.com/testnet", "https://polkadot.testnet.routescan.io", 5000000),
    _evm("moonbase-alpha-testnet", "Moonbase Alpha", "testnet", 1287,
         "https://rpc.api.moonbase.moonbeam.network", "https://moonbase.moonscan.io", 15120000),
]

EVM_NETWORKS: list[EvmNetworkConfig] = [*EVM_MAINNETS, *EVM_TESTNETS]

# ---------------------------------------------------------------------------
# Stellar
# ---------------------------------------------------------------------------

STELLAR_MAINNET = StellarNetworkConfig(
    id="stellar-mainnet",
    name="Stellar",
    type="mainnet",
    is_testnet=False,
    network_passphrase="Public Global Stellar Network ; September 2015",
    horizon_url="https://horizon.stellar.org",
    soroban_rpc_url="https://mainnet.sorobanrpc.com",
    explorer_url="https://stellar.expert/explorer/public",
    start_block=60377000,
)

STELLAR_TESTNET = StellarNetworkConfig(
    id="stellar-testnet",
    name="Stellar Testnet",
    type="testnet",
    is_testnet=True,
    network_passphrase="Test SDF Network ; September 2015",
    horizon_url="https://horizon-testnet.stellar.org",
    soroban_rpc_url="https://soroban-testnet.stellar.org",
    explorer_url="https://stellar.expert/explorer/testnet",
    start_block=14000,
)

STELLAR_NETWORKS: list[StellarNetworkConfig] = [STELLAR_MAINNET, STELLAR_TESTNET]

ALL_NETWORKS: list[AnyNetworkConfig] = [*EVM_NETWORKS, *STELLAR_NETWORKS]

_BY_ID: dict[str, AnyNetworkConfig] = {network.id: network for network in ALL_NETWORKS}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_network_by_id(network_id: str) -> AnyNetworkConfig:
    try:
        return _BY_ID[network_id]
    except KeyError:
        raise UnknownNetworkError(f"Unknown network id: {network_id!r}") from None


def get_mainnets() -> list[AnyNetworkConfig]:
    return [network for network in ALL_NETWORKS if not network.is_testnet]


def get_testnets() -> list[AnyNetworkConfig]:
    return [network for network in ALL_NETWORKS if network.is_testnet]


def get_networks_by_ecosystem(ecosystem: Ecosystem) -> list[AnyNetworkConfig]:
    return [network for network in ALL_NETWORKS if network.ecosystem == ecosystem]
