"""Lifecycle operations: create, cancel, join, resolve."""

from __future__ import annotations

from copy import deepcopy
from typing import Optional

from ..config import MAX_JOIN_REQUIREMENT, MIN_JOIN_REQUIREMENT, EngineConfig
from ..custody import create_custodial_account, release
from ..errors import ErrorCode, WagerError
from ..guards import (
    join_amount_met,
    must_be_active,
    must_exist,
    must_have_opponent,
    must_not_exist,
    must_not_have_opponent,
    same_collection,
)
from ..ledger import opt_in_direct_receive, transfer
from ..types import EngineState, EventKind, Operation, OperationType, Wager, WagerStatus
from .common import asset_from_payload, assets_from_payload, payload_dict, record_event, to_address


def verify(state: EngineState, op: Operation, config: Optional[EngineConfig] = None) -> None:
    config = config or EngineConfig()
    p = payload_dict(op)

    ot = op.op_type
    if ot == OperationType.CREATE:
        _verify_create(state, op, p)
    elif ot == OperationType.CANCEL:
        _verify_cancel(state, op)
    elif ot == OperationType.JOIN:
        _verify_join(state, op, p, config)
    elif ot == OperationType.RESOLVE:
        _verify_resolve(state, op, p)
    else:
        raise WagerError(ErrorCode.INVALID_TYPE, f"unsupported lifecycle op: {ot}")


def apply(state: EngineState, op: Operation, config: Optional[EngineConfig] = None) -> EngineState:
    p = payload_dict(op)
    ot = op.op_type
    if ot == OperationType.CREATE:
        return _apply_create(state, op, p)
    elif ot == OperationType.CANCEL:
        return _apply_cancel(state, op)
    elif ot == OperationType.JOIN:
        return _apply_join(state, op, p)
    elif ot == OperationType.RESOLVE:
        return _apply_resolve(state, op, p)
    raise WagerError(ErrorCode.INVALID_TYPE, f"unsupported lifecycle op: {ot}")


# --- CREATE ---

def _join_requirement(p: dict) -> int:
    req = p.get("join_requirement")
    if isinstance(req, bool) or not isinstance(req, int):
        raise WagerError(ErrorCode.INVALID_JOIN_REQUIREMENT, "join_requirement must be an integer")
    if req < MIN_JOIN_REQUIREMENT or req > MAX_JOIN_REQUIREMENT:
        raise WagerError(ErrorCode.INVALID_JOIN_REQUIREMENT, "join_requirement out of range")
    return req


def _verify_create(state: EngineState, op: Operation, p: dict) -> None:
    must_not_exist(state, op.caller)
    _join_requirement(p)
    asset_from_payload(p)


def _apply_create(state: EngineState, op: Operation, p: dict) -> EngineState:
    ns = deepcopy(state)
    asset = asset_from_payload(p)
    req = _join_requirement(p)

    opt_in_direct_receive(ns.ledger, op.caller)
    escrow, cap = create_custodial_account(ns, op.caller, asset, req)
    transfer(ns.ledger, op.caller, asset, escrow)

    ns.wagers[op.caller] = Wager(
        creator=op.caller,
        creator_asset=asset,
        join_requirement=req,
        escrow=escrow,
        custody=cap,
    )
    record_event(ns, EventKind.CREATED, op.caller, op.caller)
    return ns


# --- CANCEL ---

def _verify_cancel(state: EngineState, op: Operation) -> None:
    wager = must_exist(state, op.caller)
    must_be_active(wager)
    must_not_have_opponent(wager)


def _apply_cancel(state: EngineState, op: Operation) -> EngineState:
    ns = deepcopy(state)
    wager = must_exist(ns, op.caller)
    release(ns, wager.custody, wager.creator_asset, op.caller)

    wager.status = WagerStatus.CANCELLED
    # Cancelled wagers leave the live table so the creator key is free again.
    del ns.wagers[op.caller]
    ns.closed.append(wager)
    record_event(ns, EventKind.CANCELLED, op.caller, op.caller)
    return ns


# --- JOIN ---

def _verify_join(state: EngineState, op: Operation, p: dict, config: EngineConfig) -> None:
    assets = assets_from_payload(p)
    wager = must_exist(state, to_address(p.get("game"), "game"))
    must_be_active(wager)
    must_not_have_opponent(wager)
    join_amount_met(wager, assets)
    if config.enforce_same_collection:
        same_collection(wager, assets)


def _apply_join(state: EngineState, op: Operation, p: dict) -> EngineState:
    ns = deepcopy(state)
    assets = assets_from_payload(p)
    game = to_address(p.get("game"), "game")
    wager = must_exist(ns, game)

    opt_in_direct_receive(ns.ledger, op.caller)
    for asset in assets:
        transfer(ns.ledger, op.caller, asset, wager.escrow)

    wager.opponent = op.caller
    wager.opponent_assets = assets
    wager.status = WagerStatus.JOINED
    record_event(ns, EventKind.JOINED, game, op.caller)
    return ns


# --- RESOLVE ---

def _creator_won(p: dict) -> bool:
    value = p.get("creator_won")
    if not isinstance(value, bool):
        raise WagerError(ErrorCode.INVALID_PAYLOAD, "creator_won must be a bool")
    return value


def _verify_resolve(state: EngineState, op: Operation, p: dict) -> None:
    # The game is always the caller's own: only its creator can resolve it.
    _creator_won(p)
    wager = must_exist(state, op.caller)
    must_be_active(wager)
    must_have_opponent(wager)


def _apply_resolve(state: EngineState, op: Operation, p: dict) -> EngineState:
    ns = deepcopy(state)
    wager = must_exist(ns, op.caller)
    wager.creator_won = _creator_won(p)
    wager.status = WagerStatus.RESOLVED
    record_event(ns, EventKind.RESOLVED, op.caller, op.caller, winner=wager.winner())
    return ns
