"""Core types for the wager escrow engine.

A wager moves through a single tagged status; `active` and `claimed` are
derived from it rather than stored, so a record can never be both claimed
and active.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class OperationType(Enum):
    OPT_IN_DIRECT_RECEIVE = "opt_in_direct_receive"
    CREATE = "create"
    CANCEL = "cancel"
    JOIN = "join"
    RESOLVE = "resolve"
    CLAIM = "claim"


class WagerStatus(Enum):
    CREATED = "created"
    JOINED = "joined"
    RESOLVED = "resolved"
    CLAIMED = "claimed"
    CANCELLED = "cancelled"


class EventKind(Enum):
    CREATED = "created"
    CANCELLED = "cancelled"
    JOINED = "joined"
    RESOLVED = "resolved"
    CLAIMED = "claimed"


@dataclass(frozen=True, order=True)
class AssetId:
    """A uniquely identified, non-fungible asset."""
    creator: bytes
    collection: str
    name: str
    property_version: int = 0

    @property
    def collection_key(self) -> tuple[bytes, str]:
        return (self.creator, self.collection)


@dataclass(frozen=True, eq=False)
class CustodyCapability:
    """Authority to move assets out of one custodial account.

    Copies of the engine state share the same capability object; the secret
    is compared against the provisioning registry on every release.
    """
    account: bytes
    secret: bytes = field(repr=False)

    def __copy__(self) -> "CustodyCapability":
        return self

    def __deepcopy__(self, memo: dict) -> "CustodyCapability":
        return self


@dataclass
class Operation:
    op_type: OperationType
    caller: bytes
    payload: object = None


@dataclass
class Wager:
    creator: bytes
    creator_asset: AssetId
    join_requirement: int
    escrow: bytes
    custody: CustodyCapability = field(repr=False)
    status: WagerStatus = WagerStatus.CREATED
    opponent: Optional[bytes] = None
    opponent_assets: tuple[AssetId, ...] = ()
    creator_won: Optional[bool] = None

    @property
    def active(self) -> bool:
        return self.status in (WagerStatus.CREATED, WagerStatus.JOINED)

    @property
    def claimed(self) -> bool:
        return self.status == WagerStatus.CLAIMED

    @property
    def resolved_creator_won(self) -> Optional[bool]:
        return self.creator_won

    def winner(self) -> Optional[bytes]:
        if self.creator_won is None:
            return None
        return self.creator if self.creator_won else self.opponent


@dataclass(frozen=True)
class WagerView:
    """Read-only snapshot of a wager, without its custody capability."""
    creator: bytes
    creator_asset: AssetId
    join_requirement: int
    escrow: bytes
    status: WagerStatus
    active: bool
    claimed: bool
    opponent: Optional[bytes]
    opponent_assets: tuple[AssetId, ...]
    resolved_creator_won: Optional[bool]

    @classmethod
    def of(cls, wager: Wager) -> "WagerView":
        return cls(
            creator=wager.creator,
            creator_asset=wager.creator_asset,
            join_requirement=wager.join_requirement,
            escrow=wager.escrow,
            status=wager.status,
            active=wager.active,
            claimed=wager.claimed,
            opponent=wager.opponent,
            opponent_assets=wager.opponent_assets,
            resolved_creator_won=wager.creator_won,
        )


@dataclass
class WagerEvent:
    seq: int
    kind: EventKind
    game: bytes
    actor: bytes
    winner: Optional[bytes] = None


# --- Ledger ---


@dataclass
class LedgerState:
    owners: dict[AssetId, bytes] = field(default_factory=dict)
    direct_receive: set[bytes] = field(default_factory=set)


# --- EngineState ---


@dataclass
class EngineState:
    wagers: dict[bytes, Wager] = field(default_factory=dict)
    closed: list[Wager] = field(default_factory=list)
    ledger: LedgerState = field(default_factory=LedgerState)
    # Custodial account registry: escrow address -> capability.
    custodians: dict[bytes, CustodyCapability] = field(default_factory=dict)
    events: list[WagerEvent] = field(default_factory=list)
