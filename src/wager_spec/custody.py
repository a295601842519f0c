"""Custodial (escrow) account provisioning and release."""

from __future__ import annotations

import hmac
import secrets

from blake3 import blake3

from .config import CAPABILITY_SECRET_LEN, ESCROW_SEED_DOMAIN
from .errors import ErrorCode, WagerError
from .ledger import opt_in_direct_receive, transfer
from .types import AssetId, CustodyCapability, EngineState


def _u64_be(value: int) -> bytes:
    return int(value).to_bytes(8, "big", signed=False)


def _str_bytes(value: str) -> bytes:
    raw = value.encode("utf-8")
    return _u64_be(len(raw)) + raw


def derive_escrow_address(owner: bytes, asset: AssetId, join_requirement: int) -> bytes:
    """Derive the escrow address for (owner, asset, join requirement).

    Variable-length fields are length-prefixed so distinct seeds never
    collide on concatenation.
    """
    buf = bytearray()
    buf += ESCROW_SEED_DOMAIN
    buf += owner
    buf += asset.creator
    buf += _str_bytes(asset.collection)
    buf += _str_bytes(asset.name)
    buf += _u64_be(asset.property_version)
    buf += _u64_be(join_requirement)
    return blake3(buf).digest()


def create_custodial_account(
    state: EngineState, owner: bytes, asset: AssetId, join_requirement: int
) -> tuple[bytes, CustodyCapability]:
    """Provision the escrow account, returning the existing one on repeat calls."""
    address = derive_escrow_address(owner, asset, join_requirement)
    cap = state.custodians.get(address)
    if cap is None:
        cap = CustodyCapability(account=address, secret=secrets.token_bytes(CAPABILITY_SECRET_LEN))
        state.custodians[address] = cap
    opt_in_direct_receive(state.ledger, address)
    return address, cap


def check_capability(state: EngineState, cap: CustodyCapability) -> None:
    registered = state.custodians.get(cap.account)
    if registered is None or not hmac.compare_digest(registered.secret, cap.secret):
        raise WagerError(ErrorCode.UNAUTHORIZED_CAPABILITY, "capability not registered for account")


def release(state: EngineState, cap: CustodyCapability, asset: AssetId, dst: bytes) -> None:
    check_capability(state, cap)
    transfer(state.ledger, cap.account, asset, dst)
