"""
Deterministic schedule identifiers.

A schedule id is the SHA3-256 digest of the beneficiary address followed by
the beneficiary's schedule index as a 32-byte big-endian integer. The index
is the number of schedules the beneficiary already has, so the next id can
always be derived from store state alone.
"""

from __future__ import annotations

import hashlib

from ..core.exceptions import InvalidParameterError
from ..core.safe_math import require_uint256

ZERO_ADDRESS = "0x" + "0" * 40


def normalize_address(address: str) -> str:
    """Normalize address to lowercase."""
    return address.strip().lower()


def compute_schedule_id(beneficiary: str, index: int) -> str:
    """
    Compute the id of the ``index``-th schedule of ``beneficiary``.

    Args:
        beneficiary: Beneficiary address
        index: Zero-based per-beneficiary sequence number

    Returns:
        ``0x``-prefixed 64 hex digit identifier
    """
    if not isinstance(beneficiary, str) or not beneficiary.strip():
        raise InvalidParameterError("beneficiary cannot be empty")
    require_uint256(index, "index")

    payload = normalize_address(beneficiary).encode() + index.to_bytes(32, "big")
    return "0x" + hashlib.sha3_256(payload).hexdigest()
