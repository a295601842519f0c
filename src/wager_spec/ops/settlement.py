"""Settlement: claim the pooled stake of a resolved wager.

The winner is the creator iff the creator was declared the winner, else the
opponent. A winner's claim releases every opponent asset and then the
creator asset to the winner. A losing participant's claim (when allowed by
`EngineConfig.loser_may_close`) moves nothing but still closes the game, so
either participant can settle the record.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Optional

from ..config import EngineConfig
from ..custody import release
from ..errors import ErrorCode, WagerError
from ..guards import (
    must_be_a_participant,
    must_exist,
    must_have_outcome,
    must_not_be_active,
    must_not_have_claimed,
)
from ..types import EngineState, EventKind, Operation, OperationType, Wager, WagerStatus
from .common import payload_dict, record_event, to_address


def winner_of(wager: Wager) -> bytes:
    must_have_outcome(wager)
    winner = wager.winner()
    if winner is None:
        raise WagerError(ErrorCode.MUST_HAVE_OPPONENT, "resolved wager has no opponent")
    return winner


def verify(state: EngineState, op: Operation, config: Optional[EngineConfig] = None) -> None:
    config = config or EngineConfig()
    if op.op_type != OperationType.CLAIM:
        raise WagerError(ErrorCode.INVALID_TYPE, f"unsupported settlement op: {op.op_type}")
    p = payload_dict(op)

    wager = must_exist(state, to_address(p.get("game"), "game"))
    must_not_be_active(wager)
    must_have_outcome(wager)
    must_not_have_claimed(wager)
    must_be_a_participant(wager, op.caller)
    if not config.loser_may_close and op.caller != winner_of(wager):
        raise WagerError(ErrorCode.NOT_WINNER, "only the winner may claim")


def apply(state: EngineState, op: Operation, config: Optional[EngineConfig] = None) -> EngineState:
    if op.op_type != OperationType.CLAIM:
        raise WagerError(ErrorCode.INVALID_TYPE, f"unsupported settlement op: {op.op_type}")
    p = payload_dict(op)
    ns = deepcopy(state)
    game = to_address(p.get("game"), "game")
    wager = must_exist(ns, game)
    winner = winner_of(wager)

    if op.caller == winner:
        for asset in wager.opponent_assets:
            release(ns, wager.custody, asset, winner)
        release(ns, wager.custody, wager.creator_asset, winner)

    wager.status = WagerStatus.CLAIMED
    record_event(ns, EventKind.CLAIMED, game, op.caller, winner=winner)
    return ns
