"""txId normalization and address classification."""

import pytest

from settlement_api.errors import AddressClassificationError, InvalidInputError
from settlement_api.identifiers import OFF_CHAIN_PREFIX, normalize_tx_id
from settlement_api.networks import Network, classify_address, parse_network

from tests.helpers import SOLANA_ADDRESS, TRC20_ADDRESS


class TestNormalizeTxId:

    def test_bare_id_gets_prefix(self):
        candidates = normalize_tx_id("344178838453")
        assert candidates.canonical == "Off-chain transfer 344178838453"
        assert candidates.original == "344178838453"
        assert candidates.keys == ("Off-chain transfer 344178838453", "344178838453")

    def test_prefixed_id_is_already_canonical(self):
        candidates = normalize_tx_id("Off-chain transfer 344178838453")
        assert candidates.canonical == "Off-chain transfer 344178838453"
        assert candidates.keys == ("Off-chain transfer 344178838453",)

    def test_both_forms_share_canonical(self):
        assert (
            normalize_tx_id("344178838453").canonical
            == normalize_tx_id("  Off-chain transfer 344178838453 ").canonical
        )

    def test_whitespace_is_trimmed(self):
        candidates = normalize_tx_id("  abc123\n")
        assert candidates.original == "abc123"
        assert candidates.canonical == f"{OFF_CHAIN_PREFIX}abc123"

    @pytest.mark.parametrize("raw", ["", "   ", None, 12345, ["abc"]])
    def test_blank_or_non_string_rejected(self, raw):
        with pytest.raises(InvalidInputError):
            normalize_tx_id(raw)

    def test_matches_upstream_in_either_form(self):
        candidates = normalize_tx_id("344178838453")
        assert candidates.matches("344178838453")
        assert candidates.matches("Off-chain transfer 344178838453")
        assert candidates.matches(" Off-chain transfer 344178838453 ")
        assert not candidates.matches("344178838454")
        assert not candidates.matches(None)

    def test_prefixed_claim_does_not_match_bare_upstream(self):
        # Only the trimmed original and the canonical form are candidates
        candidates = normalize_tx_id("Off-chain transfer 344178838453")
        assert not candidates.matches("344178838453")


class TestClassifyAddress:

    def test_trc20_address(self):
        assert classify_address(TRC20_ADDRESS) == Network.TRX

    def test_solana_address(self):
        assert classify_address(SOLANA_ADDRESS) == Network.SOL

    def test_trc20_checked_before_solana(self):
        # Valid TRC20 addresses also fit the base58 Solana shape
        assert len(TRC20_ADDRESS) == 34
        assert classify_address(TRC20_ADDRESS) == Network.TRX

    @pytest.mark.parametrize("address", [
        "0x2868fc0d9786a740b491577a43502259efa78a39",  # EVM
        "T123",  # too short
        "0" * 40,  # 0 is not base58
        "not an address at all",
        "",
    ])
    def test_unrecognized_address(self, address):
        with pytest.raises(AddressClassificationError):
            classify_address(address)

    def test_classification_error_is_invalid_input(self):
        assert issubclass(AddressClassificationError, InvalidInputError)


class TestParseNetwork:

    def test_known_networks(self):
        assert parse_network("TRX") == Network.TRX
        assert parse_network("SOL") == Network.SOL

    @pytest.mark.parametrize("value", ["ETH", "trx", "TRC20", 1])
    def test_unknown_network(self, value):
        with pytest.raises(InvalidInputError):
            parse_network(value)
