"""
receipts.py - Run Receipts

Every engine run, oracle comparison and failed integrity check leaves a
receipt: a flat dict stamped with its type, a UTC timestamp, the tenant and
a hash of its payload. The CLI collects them into a ledger and writes one
JSON object per line with --receipts.

Payload hashes pair SHA-256 with BLAKE3 as "sha256_hex:blake3_hex".
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import blake3

__all__ = [
    "dual_hash",
    "emit_receipt",
    "write_receipt_jsonl",
    "StopRule",
    "RECEIPT_SCHEMA",
]

# =============================================================================
# CONSTANTS
# =============================================================================

# Fields present on every receipt, whatever its payload
RECEIPT_SCHEMA = {
    "receipt_type": "str",
    "ts": "ISO8601",
    "tenant_id": "str",
    "payload_hash": "str (SHA256:BLAKE3)",
}

DEFAULT_TENANT = "occupancy"


# =============================================================================
# HASHING
# =============================================================================

def dual_hash(data: Union[bytes, str]) -> str:
    """
    Hash data with SHA-256 and BLAKE3, joined by a colon.

    Strings are UTF-8 encoded first, so dual_hash("x") == dual_hash(b"x").
    """
    if isinstance(data, str):
        data = data.encode()
    sha = hashlib.sha256(data).hexdigest()
    b3 = blake3.blake3(data).hexdigest()
    return f"{sha}:{b3}"


# =============================================================================
# RECEIPTS
# =============================================================================

def emit_receipt(receipt_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Stamp a payload as a receipt.

    The payload hash is taken over the key-sorted JSON of data, so two
    payloads with the same fields hash the same regardless of key order.

    Args:
        receipt_type: e.g. "distribution_run", "self_check", "anomaly"
        data: Payload fields, merged into the receipt. A "tenant_id" key
            overrides the "occupancy" default.

    Returns:
        dict: RECEIPT_SCHEMA fields followed by the payload fields
    """
    receipt = {
        "receipt_type": receipt_type,
        "ts": datetime.now(timezone.utc).isoformat(),
        "tenant_id": data.get("tenant_id", DEFAULT_TENANT),
        "payload_hash": dual_hash(json.dumps(data, sort_keys=True)),
        **data
    }
    return receipt


def write_receipt_jsonl(receipt: Dict[str, Any], fh) -> None:
    """Write one receipt as a compact JSON line to an open text handle."""
    line = json.dumps(receipt, separators=(",", ":"))
    fh.write(line + "\n")


# =============================================================================
# STOPRULE
# =============================================================================

class StopRule(Exception):
    """
    A run failed an integrity check and must not report a result.

    receipts holds what the failing check emitted (self_check, anomaly) so
    callers can still write them to their ledger before the error surfaces.
    """

    def __init__(self, message: str, receipts: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.receipts = list(receipts or [])
