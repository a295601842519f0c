"""Precondition checks over wager records.

Every check is pure: it either returns (possibly the looked-up wager) or
raises `WagerError` with its own code. Operations run their checks in
sequence before touching state.
"""

from __future__ import annotations

from typing import Sequence

from .errors import ErrorCode, WagerError
from .types import AssetId, EngineState, Wager


def must_not_exist(state: EngineState, key: bytes) -> None:
    if key in state.wagers:
        raise WagerError(ErrorCode.MUST_NOT_EXIST, "wager already exists for creator")


def must_exist(state: EngineState, key: bytes) -> Wager:
    wager = state.wagers.get(key)
    if wager is None:
        raise WagerError(ErrorCode.MUST_EXIST, "no wager for key")
    return wager


def must_be_active(wager: Wager) -> None:
    if not wager.active:
        raise WagerError(ErrorCode.MUST_BE_ACTIVE, "wager is not active")


def must_not_be_active(wager: Wager) -> None:
    if wager.active:
        raise WagerError(ErrorCode.MUST_NOT_BE_ACTIVE, "wager is still active")


def must_have_opponent(wager: Wager) -> None:
    if wager.opponent is None:
        raise WagerError(ErrorCode.MUST_HAVE_OPPONENT, "wager has no opponent")


def must_not_have_opponent(wager: Wager) -> None:
    if wager.opponent is not None:
        raise WagerError(ErrorCode.MUST_NOT_HAVE_OPPONENT, "wager already has an opponent")


def join_amount_met(wager: Wager, assets: Sequence[AssetId]) -> None:
    if len(assets) != wager.join_requirement:
        raise WagerError(
            ErrorCode.JOIN_AMOUNT_MET,
            f"expected {wager.join_requirement} assets, got {len(assets)}",
        )


def must_have_outcome(wager: Wager) -> None:
    if wager.creator_won is None:
        raise WagerError(ErrorCode.MUST_HAVE_OUTCOME, "wager has no outcome")


def must_not_have_claimed(wager: Wager) -> None:
    if wager.claimed:
        raise WagerError(ErrorCode.MUST_NOT_HAVE_CLAIMED, "wager already claimed")


def must_be_a_participant(wager: Wager, caller: bytes) -> None:
    if caller != wager.creator and caller != wager.opponent:
        raise WagerError(ErrorCode.MUST_BE_A_PARTICIPANT, "caller is not a participant")


def equal_lengths(*seqs: Sequence[object]) -> None:
    if len({len(s) for s in seqs}) > 1:
        raise WagerError(ErrorCode.EQUAL_LENGTHS, "asset descriptor lists differ in length")


def same_collection(wager: Wager, assets: Sequence[AssetId]) -> None:
    expected = wager.creator_asset.collection_key
    for asset in assets:
        if asset.collection_key != expected:
            raise WagerError(ErrorCode.NOT_SAME_COLLECTION, f"{asset.name!r} is not in the wager collection")
