"""
Record Normalizer Tests.

============================================================
PURPOSE
============================================================
Covers wei formatting, gas fees, status derivation, type
classification and full row normalization.

============================================================
"""

import pytest

from ledger_history.models import (
    Direction,
    LedgerRecord,
    RecordKind,
    TransactionStatus,
    TransactionType,
)
from ledger_history.normalizer import (
    ZERO_ADDRESS,
    RecordNormalizer,
    classify_direction,
    classify_type,
    compute_gas_fee,
    format_ether,
    status_of,
    value_in_usd,
)


ADDRESS = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"
THIRD = "0x3333333333333333333333333333333333333333"


# ============================================================
# WEI FORMATTING
# ============================================================

class TestFormatEther:
    """Tests for format_ether."""

    def test_half_ether(self):
        assert format_ether(1_500_000_000_000_000_000, 6) == "1.5"

    def test_truncates_instead_of_rounding(self):
        assert format_ether(1_000_000_000_000_000_001, 6) == "1"
        assert format_ether(1_999_999_999_999_999_999, 6) == "1.999999"

    def test_string_input(self):
        assert format_ether("2500000000000000000") == "2.5"

    def test_zero(self):
        assert format_ether(0) == "0"
        assert format_ether("0") == "0"

    def test_dust_below_precision_is_zero(self):
        assert format_ether(1, 6) == "0"

    def test_eight_decimals(self):
        assert format_ether(123_456_789_000_000_000, 8) == "0.12345678"

    def test_beyond_float_precision(self):
        wei = 123_456_789_123_456_789_123_456_789
        assert format_ether(wei, 18) == "123456789.123456789123456789"

    def test_unparsable_input(self):
        assert format_ether("not-a-number") == "0"
        assert format_ether(None) == "0"
        assert format_ether("1.5") == "0"

    def test_zero_decimals(self):
        assert format_ether(3_700_000_000_000_000_000, 0) == "3"

    def test_negative_amount(self):
        assert format_ether(-1_500_000_000_000_000_000, 6) == "-1.5"


class TestComputeGasFee:
    """Tests for compute_gas_fee."""

    def test_standard_transfer(self):
        # 21000 * 20 gwei = 0.00042 ETH
        assert compute_gas_fee("21000", "20000000000") == "0.00042"

    def test_large_operands_stay_exact(self):
        assert compute_gas_fee("30000000", "1000000000000", 18) == "30"

    def test_unparsable(self):
        assert compute_gas_fee(None, "1") == "0"
        assert compute_gas_fee("abc", "1") == "0"


# ============================================================
# STATUS
# ============================================================

def _record(kind=RecordKind.NATIVE, **overrides):
    values = dict(
        kind=kind,
        block_number=1,
        timestamp=1_700_000_000,
        hash="0xabc",
        from_address=OTHER,
        to_address=ADDRESS,
        value="0",
    )
    values.update(overrides)
    return LedgerRecord(**values)


class TestStatus:
    """Tests for status_of."""

    def test_native_success(self):
        assert status_of(_record(receipt_status="1", is_error="0")) is TransactionStatus.SUCCESS

    def test_native_success_without_error_flag(self):
        assert status_of(_record(receipt_status="1")) is TransactionStatus.SUCCESS

    def test_native_failed_receipt(self):
        assert status_of(_record(receipt_status="0", is_error="0")) is TransactionStatus.FAILED

    def test_native_error_flag_wins(self):
        assert status_of(_record(receipt_status="1", is_error="1")) is TransactionStatus.FAILED

    def test_native_pending(self):
        assert status_of(_record(receipt_status=None, is_error="0")) is TransactionStatus.PENDING

    @pytest.mark.parametrize("receipt", ["1", "0", None, ""])
    @pytest.mark.parametrize("error", ["1", "0", None])
    def test_native_exactly_one_status(self, receipt, error):
        status = status_of(_record(receipt_status=receipt, is_error=error))
        assert status in set(TransactionStatus)

    def test_internal_success(self):
        record = _record(kind=RecordKind.INTERNAL, is_error="0")
        assert status_of(record) is TransactionStatus.SUCCESS

    def test_internal_never_pending(self):
        record = _record(kind=RecordKind.INTERNAL, is_error=None)
        assert status_of(record) is TransactionStatus.SUCCESS

    def test_internal_failed(self):
        record = _record(kind=RecordKind.INTERNAL, is_error="1")
        assert status_of(record) is TransactionStatus.FAILED


# ============================================================
# CLASSIFICATION
# ============================================================

class TestClassification:
    """Tests for direction and type classification."""

    def test_received(self):
        assert classify_direction(ADDRESS, OTHER, ADDRESS) is Direction.RECEIVED

    def test_sent(self):
        assert classify_direction(ADDRESS, ADDRESS, OTHER) is Direction.SENT

    def test_self(self):
        assert classify_direction(ADDRESS, ADDRESS, ADDRESS) is Direction.SELF

    def test_contract_creation(self):
        assert classify_direction(ADDRESS, ADDRESS, None) is Direction.CONTRACT_CREATION
        assert classify_direction(ADDRESS, ADDRESS, "") is Direction.CONTRACT_CREATION
        assert classify_direction(ADDRESS, ADDRESS, ZERO_ADDRESS) is Direction.CONTRACT_CREATION

    def test_other(self):
        assert classify_direction(ADDRESS, OTHER, THIRD) is Direction.OTHER

    def test_case_insensitive(self):
        mixed = "0xAbCdEf0000000000000000000000000000000001"
        assert classify_direction(mixed.lower(), OTHER, mixed) is Direction.RECEIVED
        assert classify_direction(mixed, mixed.lower(), OTHER) is Direction.SENT

    def test_swap_symmetry(self):
        assert classify_direction(ADDRESS, OTHER, ADDRESS) is Direction.RECEIVED
        assert classify_direction(ADDRESS, ADDRESS, OTHER) is Direction.SENT
        assert classify_direction(ADDRESS, ADDRESS, ADDRESS) is Direction.SELF

    def test_native_labels(self):
        record = _record(from_address=ADDRESS, to_address=OTHER)
        assert classify_type(ADDRESS, record) is TransactionType.SENT
        assert classify_type(ADDRESS, record).value == "Sent"

    @pytest.mark.parametrize(
        "sender,recipient,label",
        [
            (OTHER, ADDRESS, "Internal Received"),
            (ADDRESS, OTHER, "Internal Sent"),
            (ADDRESS, ADDRESS, "Internal Self"),
            (ADDRESS, None, "Internal Contract Creation"),
            (OTHER, THIRD, "Internal"),
        ],
    )
    def test_internal_labels(self, sender, recipient, label):
        record = _record(kind=RecordKind.INTERNAL, from_address=sender, to_address=recipient)
        assert classify_type(ADDRESS, record).value == label

    def test_every_kind_direction_pair_has_label(self):
        labels = {
            TransactionType.of(kind, direction)
            for kind in RecordKind
            for direction in Direction
        }
        assert labels == set(TransactionType)


# ============================================================
# NORMALIZATION
# ============================================================

class TestRecordNormalizer:
    """Tests for RecordNormalizer."""

    def test_native_row(self):
        record = _record(
            hash="0xfeed",
            value="1500000000000000000",
            gas_used="21000",
            gas_price="20000000000",
            receipt_status="1",
            is_error="0",
        )
        row = RecordNormalizer(ADDRESS).normalize(record, price_usd=2000.0)

        assert row.kind is RecordKind.NATIVE
        assert row.status is TransactionStatus.SUCCESS
        assert row.type is TransactionType.RECEIVED
        assert row.value_ether == "1.5"
        assert row.value_usd == 3000.0
        assert row.gas_fee_ether == "0.00042"
        assert row.explorer_url == "https://etherscan.io/tx/0xfeed"

    def test_internal_row_has_no_gas_fee(self):
        record = _record(kind=RecordKind.INTERNAL, gas_used="21000", gas_price="1")
        row = RecordNormalizer(ADDRESS).normalize(record, price_usd=None)

        assert row.gas_fee_ether is None
        assert row.value_usd is None
        assert row.type is TransactionType.INTERNAL_RECEIVED

    def test_missing_to_becomes_empty_string(self):
        record = _record(from_address=ADDRESS, to_address=None)
        row = RecordNormalizer(ADDRESS).normalize(record)

        assert row.to_address == ""
        assert row.type is TransactionType.CONTRACT_CREATION

    def test_usd_rounded_to_cents(self):
        assert value_in_usd("0.123456", 3000.0) == 370.37

    def test_zero_price_is_a_price(self):
        assert value_in_usd("1", 0.0) == 0.0

    def test_row_is_immutable(self):
        row = RecordNormalizer(ADDRESS).normalize(_record())
        with pytest.raises(AttributeError):
            row.value_ether = "5"

    def test_wire_format(self):
        row = RecordNormalizer(ADDRESS).normalize(_record(timestamp=1_700_000_000))
        data = row.to_dict()

        assert data["kind"] == "native"
        assert data["timeStamp"] == 1_700_000_000
        assert data["dateTimeUtc"] == "2023-11-14T22:13:20.000Z"
        assert data["from"] == OTHER
        assert data["to"] == ADDRESS
        assert set(data) == {
            "kind", "hash", "timeStamp", "dateTimeUtc", "status", "type",
            "from", "to", "valueEth", "valueUsd", "gasFeeEth", "explorerUrl",
        }
