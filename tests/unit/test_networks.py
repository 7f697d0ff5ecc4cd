"""Unit tests for the network registry."""

from __future__ import annotations

import pytest

from accessindex.networks import (
    ALL_NETWORKS,
    EVM_MAINNETS,
    EVM_TESTNETS,
    EvmNetworkConfig,
    StellarNetworkConfig,
    UnknownNetworkError,
    get_mainnets,
    get_network_by_id,
    get_networks_by_ecosystem,
    get_testnets,
)


class TestRegistry:
    def test_counts(self):
        assert len(ALL_NETWORKS) == 30
        assert len(EVM_MAINNETS) == 14
        assert len(EVM_TESTNETS) == 14
        assert len(get_networks_by_ecosystem("evm")) == 28
        assert len(get_networks_by_ecosystem("stellar")) == 2

    def test_ids_unique(self):
        ids = [network.id for network in ALL_NETWORKS]
        assert len(ids) == len(set(ids))

    def test_chain_ids_unique(self):
        chain_ids = [n.chain_id for n in ALL_NETWORKS if isinstance(n, EvmNetworkConfig)]
        assert len(chain_ids) == len(set(chain_ids))

    def test_type_matches_flag(self):
        for network in ALL_NETWORKS:
            assert network.is_testnet is (network.type == "testnet")
            assert network.start_block >= 0

    def test_mainnet_testnet_partition(self):
        mainnets, testnets = get_mainnets(), get_testnets()
        assert len(mainnets) + len(testnets) == len(ALL_NETWORKS)
        assert not {n.id for n in mainnets} & {n.id for n in testnets}


class TestLookup:
    def test_evm_network(self):
        network = get_network_by_id("ethereum-mainnet")
        assert isinstance(network, EvmNetworkConfig)
        assert network.chain_id == 1
        assert network.ecosystem == "evm"

    def test_stellar_network(self):
        network = get_network_by_id("stellar-testnet")
        assert isinstance(network, StellarNetworkConfig)
        assert network.network_passphrase == "Test SDF Network ; September 2015"
        assert network.is_testnet

    def test_unknown_network(self):
        with pytest.raises(UnknownNetworkError, match="Unknown network id"):
            get_network_by_id("solana-mainnet")

    def test_unknown_network_is_key_error(self):
        with pytest.raises(KeyError):
            get_network_by_id("")

    def test_configs_are_frozen(self):
        network = get_network_by_id("base-mainnet")
        with pytest.raises(Exception):
            network.chain_id = 1
