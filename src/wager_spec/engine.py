"""Typed service facade over the state transition functions.

`WagerEngine` owns the current `EngineState`. Every mutating call builds an
`Operation`, runs it through `apply_op` under the writer lock and publishes
the new state only on success; a rejection is logged and re-raised as the
original `WagerError`.

Usage:
    engine = WagerEngine()
    engine.mint(asset, ALICE)
    engine.create(ALICE, asset, join_requirement=2)
    engine.join(BOB, ALICE, creators, collections, names, versions)
    engine.resolve(ALICE, creator_won=False)
    engine.claim(BOB, ALICE)
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence

from . import ledger
from .codec_adapter import state_from_json, state_to_json
from .config import EngineConfig
from .errors import ErrorCode, WagerError
from .state_digest import compute_state_digest
from .state_transition import apply_op, verify_op
from .types import (
    AssetId,
    EngineState,
    Operation,
    OperationType,
    WagerEvent,
    WagerView,
)

logger = logging.getLogger(__name__)


def create_payload(asset: AssetId, join_requirement: int) -> dict:
    return {
        "collection_creator": asset.creator,
        "collection": asset.collection,
        "name": asset.name,
        "property_version": asset.property_version,
        "join_requirement": join_requirement,
    }


def join_payload(
    game: bytes,
    creators: Sequence[bytes],
    collections: Sequence[str],
    names: Sequence[str],
    versions: Sequence[int],
) -> dict:
    return {
        "game": game,
        "creators": list(creators),
        "collections": list(collections),
        "names": list(names),
        "versions": list(versions),
    }


class WagerEngine:
    """Serialized, all-or-nothing access to the wager state."""

    def __init__(
        self,
        state: Optional[EngineState] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self._state = state if state is not None else EngineState()
        self._config = config if config is not None else EngineConfig()
        # Commits replace the whole state, so one writer lock serializes
        # every game key.
        self._lock = threading.Lock()

    @property
    def config(self) -> EngineConfig:
        return self._config

    def snapshot(self) -> EngineState:
        """Detached copy of the state, rebuilt from JSON with fresh capabilities."""
        with self._lock:
            exported = state_to_json(self._state)
        return state_from_json(exported)

    def _execute(self, op: Operation) -> EngineState:
        with self._lock:
            new_state, result = apply_op(self._state, op, self._config)
            if not result.ok:
                logger.warning(
                    f"{op.op_type.value} rejected for {op.caller.hex()[:16]}: {result.error}"
                )
                raise result.error
            self._state = new_state
        logger.info(f"{op.op_type.value} committed for {op.caller.hex()[:16]}")
        return new_state

    def check(self, op: Operation) -> None:
        """Raise the error `op` would fail with, without applying it."""
        with self._lock:
            result = verify_op(self._state, op, self._config)
        if not result.ok:
            raise result.error

    # --- collaborator setup ---

    def mint(self, asset: AssetId, owner: bytes) -> None:
        with self._lock:
            ledger.mint(self._state.ledger, asset, owner)
        logger.debug(f"minted {asset.name!r} to {owner.hex()[:16]}")

    def opt_in_direct_receive(self, account: bytes) -> None:
        self._execute(Operation(OperationType.OPT_IN_DIRECT_RECEIVE, account))

    # --- lifecycle ---

    def create(self, caller: bytes, asset: AssetId, join_requirement: int) -> WagerView:
        committed = self._execute(
            Operation(OperationType.CREATE, caller, create_payload(asset, join_requirement))
        )
        return WagerView.of(committed.wagers[caller])

    def cancel(self, caller: bytes) -> WagerView:
        committed = self._execute(Operation(OperationType.CANCEL, caller))
        return WagerView.of(committed.closed[-1])

    def join(
        self,
        caller: bytes,
        game: bytes,
        creators: Sequence[bytes],
        collections: Sequence[str],
        names: Sequence[str],
        versions: Sequence[int],
    ) -> WagerView:
        payload = join_payload(game, creators, collections, names, versions)
        committed = self._execute(Operation(OperationType.JOIN, caller, payload))
        return WagerView.of(committed.wagers[game])

    def join_assets(self, caller: bytes, game: bytes, assets: Sequence[AssetId]) -> WagerView:
        return self.join(
            caller,
            game,
            [a.creator for a in assets],
            [a.collection for a in assets],
            [a.name for a in assets],
            [a.property_version for a in assets],
        )

    def resolve(self, caller: bytes, creator_won: bool) -> WagerView:
        committed = self._execute(Operation(OperationType.RESOLVE, caller, {"creator_won": creator_won}))
        return WagerView.of(committed.wagers[caller])

    # --- settlement ---

    def claim(self, caller: bytes, game: bytes) -> WagerView:
        committed = self._execute(Operation(OperationType.CLAIM, caller, {"game": game}))
        return WagerView.of(committed.wagers[game])

    # --- views ---

    def get_wager(self, game: bytes) -> WagerView:
        with self._lock:
            wager = self._state.wagers.get(game)
            if wager is None:
                raise WagerError(ErrorCode.MUST_EXIST, "no wager for key")
            return WagerView.of(wager)

    def has_wager(self, game: bytes) -> bool:
        with self._lock:
            return game in self._state.wagers

    def escrow_address(self, game: bytes) -> bytes:
        return self.get_wager(game).escrow

    def owner_of(self, asset: AssetId) -> Optional[bytes]:
        with self._lock:
            return ledger.owner_of(self._state.ledger, asset)

    def holdings(self, account: bytes) -> list[AssetId]:
        with self._lock:
            return ledger.holdings_of(self._state.ledger, account)

    def events(self) -> list[WagerEvent]:
        with self._lock:
            return list(self._state.events)

    def closed(self) -> list[WagerView]:
        with self._lock:
            return [WagerView.of(w) for w in self._state.closed]

    def state_digest(self) -> str:
        with self._lock:
            exported = state_to_json(self._state)
        return compute_state_digest(exported)
