"""Unit tests for address and role normalization."""

from __future__ import annotations

import pytest

from accessindex.core.normalizer import (
    DEFAULT_ADMIN_ROLE,
    ZERO_ADDRESS,
    InvalidFormatError,
    format_role,
    is_default_admin_role,
    is_ownership_renounce,
    is_valid_role_symbol,
    is_zero_address,
    normalize_evm_address,
    normalize_stellar_address,
    topic_to_address,
)

from tests.chain_data import stellar_account, stellar_contract

MIXED = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"


class TestNormalizeEvmAddress:
    def test_lowercases(self):
        assert normalize_evm_address(MIXED) == MIXED.lower()

    def test_adds_missing_prefix(self):
        assert normalize_evm_address(MIXED[2:]) == MIXED.lower()

    def test_strips_whitespace(self):
        assert normalize_evm_address(f"  {MIXED}\n") == MIXED.lower()

    def test_idempotent(self):
        once = normalize_evm_address(MIXED)
        assert normalize_evm_address(once) == once

    def test_empty_raises(self):
        with pytest.raises(InvalidFormatError, match="Address is required"):
            normalize_evm_address("")

    @pytest.mark.parametrize(
        "raw",
        [
            "0x1234",
            MIXED + "00",
            "0x" + "g" * 40,
            "0X" + "a" * 40,
        ],
    )
    def test_invalid_raises(self, raw):
        with pytest.raises(InvalidFormatError):
            normalize_evm_address(raw)


class TestNormalizeStellarAddress:
    def test_account_returned_unchanged(self):
        account = stellar_account()
        assert normalize_stellar_address(account) == account

    def test_contract_returned_unchanged(self):
        contract = stellar_contract()
        assert normalize_stellar_address(f" {contract} ") == contract

    def test_no_case_folding(self):
        with pytest.raises(InvalidFormatError):
            normalize_stellar_address(stellar_account().lower())

    @pytest.mark.parametrize("raw", ["", "G123", "X" + "A" * 55, "G" + "A" * 56])
    def test_invalid_raises(self, raw):
        with pytest.raises(InvalidFormatError):
            normalize_stellar_address(raw)


class TestZeroAddress:
    def test_zero_address(self):
        assert is_zero_address(ZERO_ADDRESS)
        assert is_zero_address("0" * 40)

    def test_non_zero(self):
        assert not is_zero_address(MIXED)

    def test_unparseable_is_false(self):
        assert not is_zero_address("garbage")

    def test_renounce_is_transfer_to_zero(self):
        assert is_ownership_renounce(ZERO_ADDRESS)
        assert not is_ownership_renounce(MIXED)


class TestRoles:
    def test_format_role_adds_prefix_and_lowercases(self):
        assert format_role("AB" * 32) == "0x" + "ab" * 32

    def test_format_role_keeps_prefix(self):
        assert format_role("0x" + "CD" * 32) == "0x" + "cd" * 32

    def test_default_admin_role(self):
        assert is_default_admin_role("0" * 64)
        assert is_default_admin_role(DEFAULT_ADMIN_ROLE)
        assert not is_default_admin_role("0x" + "01" * 32)

    @pytest.mark.parametrize("value", ["minter", "ADMIN_ROLE", "a", "x" * 32, "role_1"])
    def test_valid_symbols(self, value):
        assert is_valid_role_symbol(value)

    @pytest.mark.parametrize("value", ["", "x" * 33, "has space", "dash-ed", "minter\n", None, 7])
    def test_invalid_symbols(self, value):
        assert not is_valid_role_symbol(value)


class TestTopicToAddress:
    def test_extracts_low_twenty_bytes(self):
        topic = "0x" + "0" * 24 + MIXED[2:]
        assert topic_to_address(topic) == MIXED.lower()

    def test_short_topic_raises(self):
        with pytest.raises(InvalidFormatError):
            topic_to_address("0x1234")
