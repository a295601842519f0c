"""In-process asset ledger with direct-receive authorization.

Each asset has exactly one owner. A transfer moves ownership atomically and
is rejected unless the source holds the asset and the destination has opted
in to direct receive.
"""

from __future__ import annotations

from typing import Optional

from .errors import ErrorCode, WagerError
from .types import AssetId, LedgerState


def mint(ledger: LedgerState, asset: AssetId, owner: bytes) -> None:
    if asset in ledger.owners:
        raise WagerError(ErrorCode.INVALID_PAYLOAD, "asset already exists")
    ledger.owners[asset] = owner


def owner_of(ledger: LedgerState, asset: AssetId) -> Optional[bytes]:
    return ledger.owners.get(asset)


def holdings_of(ledger: LedgerState, account: bytes) -> list[AssetId]:
    return sorted(a for a, owner in ledger.owners.items() if owner == account)


def opt_in_direct_receive(ledger: LedgerState, account: bytes) -> None:
    ledger.direct_receive.add(account)


def can_receive(ledger: LedgerState, account: bytes) -> bool:
    return account in ledger.direct_receive


def transfer(
    ledger: LedgerState, src: bytes, asset: AssetId, dst: bytes, quantity: int = 1
) -> None:
    if quantity != 1:
        raise WagerError(ErrorCode.TRANSFER_REJECTED, "non-fungible quantity must be 1")
    if ledger.owners.get(asset) != src:
        raise WagerError(ErrorCode.TRANSFER_REJECTED, f"source does not hold {asset.name!r}")
    if dst not in ledger.direct_receive:
        raise WagerError(ErrorCode.TRANSFER_REJECTED, "destination has not opted in to direct receive")
    ledger.owners[asset] = dst
