"""Canonical state digest implementation (v1)."""
from __future__ import annotations

from typing import Any

from blake3 import blake3

_STATUS_TAGS = {
    "created": 0,
    "joined": 1,
    "resolved": 2,
    "claimed": 3,
    "cancelled": 4,
}


def _hex_to_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    if v == "":
        return b""
    return bytes.fromhex(v)


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def _str(value: str) -> bytes:
    raw = value.encode("utf-8")
    return _u64_be(len(raw)) + raw


def _address(value: str | None) -> bytes:
    addr = _hex_to_bytes(value)
    if len(addr) not in (0, 32):
        raise ValueError(f"address must be 32 bytes, got {len(addr)}")
    return addr.rjust(32, b"\x00")


def _asset(asset: dict[str, Any]) -> bytes:
    return (
        _address(asset.get("creator"))
        + _str(asset.get("collection", ""))
        + _str(asset.get("name", ""))
        + _u64_be(int(asset.get("property_version", 0)))
    )


def _outcome(value: bool | None) -> bytes:
    if value is None:
        return b"\x00"
    return b"\x02" if value else b"\x01"


def compute_state_digest(post_state: dict[str, Any]) -> str:
    """Compute state digest v1 from post_state.

    Live wagers are encoded sorted by creator, then ownership records sorted
    by asset, and the buffer is hashed with BLAKE3-256. Events and closed
    history are not part of the digest.
    """
    wagers = post_state.get("wagers", []) if isinstance(post_state, dict) else []
    buf = bytearray()
    buf += _u64_be(len(wagers))
    for w in sorted(wagers, key=lambda x: _address(x.get("creator"))):
        buf += _address(w.get("creator"))
        buf += _asset(w.get("creator_asset", {}))
        buf += _u64_be(int(w.get("join_requirement", 0)))
        buf += _address(w.get("escrow"))
        buf += bytes([_STATUS_TAGS[w.get("status", "created")]])
        buf += _address(w.get("opponent"))
        opponent_assets = w.get("opponent_assets", [])
        buf += _u64_be(len(opponent_assets))
        for a in opponent_assets:
            buf += _asset(a)
        buf += _outcome(w.get("creator_won"))

    holdings = post_state.get("holdings", []) if isinstance(post_state, dict) else []
    encoded = sorted(_asset(h.get("asset", {})) + _address(h.get("owner")) for h in holdings)
    buf += _u64_be(len(encoded))
    for item in encoded:
        buf += item

    return blake3(buf).hexdigest()
