"""
tests/test_receipts.py - Receipt Emission Tests

Validates dual_hash format, receipt fields and JSONL output.
"""

import io
import json

import pytest

from occupancy import RECEIPT_TYPES, compute_distribution
from receipts import RECEIPT_SCHEMA, StopRule, dual_hash, emit_receipt, write_receipt_jsonl


class TestDualHash:
    """SHA256:BLAKE3."""

    def test_format(self):
        sha, b3 = dual_hash(b"occupancy").split(":")
        assert len(sha) == 64
        assert len(b3) == 64
        int(sha, 16)
        int(b3, 16)

    def test_str_and_bytes_agree(self):
        assert dual_hash("abc") == dual_hash(b"abc")

    def test_known_sha256(self):
        sha, _ = dual_hash(b"").split(":")
        assert sha == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

    def test_different_input_different_hash(self):
        assert dual_hash(b"a") != dual_hash(b"b")


class TestEmitReceipt:
    """Receipt structure."""

    def test_required_fields(self):
        receipt = emit_receipt("self_check", {"n": 6, "passed": True})
        for key in ("receipt_type", "ts", "tenant_id", "payload_hash"):
            assert key in receipt
        assert receipt["receipt_type"] == "self_check"
        assert receipt["tenant_id"] == "occupancy"
        assert receipt["n"] == 6

    def test_schema_fields_present(self):
        receipt = emit_receipt("coverage_run", {"n": 10})
        assert set(RECEIPT_SCHEMA) <= set(receipt)

    def test_engine_receipt_types_declared(self):
        ledger = []
        compute_distribution(4, ledger=ledger)
        assert all(r["receipt_type"] in RECEIPT_TYPES for r in ledger)

    def test_tenant_override(self):
        receipt = emit_receipt("anomaly", {"tenant_id": "lab"})
        assert receipt["tenant_id"] == "lab"

    def test_payload_hash_deterministic(self):
        first = emit_receipt("distribution_run", {"n": 3, "first": 1})
        second = emit_receipt("distribution_run", {"first": 1, "n": 3})
        assert first["payload_hash"] == second["payload_hash"]


class TestWriteReceiptJsonl:
    """One JSON object per line."""

    def test_lines(self):
        fh = io.StringIO()
        write_receipt_jsonl(emit_receipt("self_check", {"n": 1}), fh)
        write_receipt_jsonl(emit_receipt("distribution_run", {"n": 1}), fh)
        lines = fh.getvalue().splitlines()
        assert len(lines) == 2
        assert [json.loads(line)["receipt_type"] for line in lines] == [
            "self_check", "distribution_run"
        ]


class TestStopRule:
    def test_is_exception(self):
        with pytest.raises(StopRule):
            raise StopRule("halt")

    def test_carries_no_receipts_by_default(self):
        assert StopRule("halt").receipts == []

    def test_carries_check_receipts(self):
        anomaly = emit_receipt("anomaly", {"metric": "distribution_total"})
        err = StopRule("halt", receipts=[anomaly])
        assert str(err) == "halt"
        assert err.receipts == [anomaly]
