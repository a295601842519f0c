"""State transition entrypoints for the wager engine."""

from __future__ import annotations

from typing import Optional

from .config import ADDRESS_LEN, EngineConfig
from .errors import ErrorCode, WagerError
from .types import EngineState, Operation, OperationType
from .ops import lifecycle as op_lifecycle
from .ops import receipt as op_receipt
from .ops import settlement as op_settlement

_LIFECYCLE_TYPES = frozenset({
    OperationType.CREATE,
    OperationType.CANCEL,
    OperationType.JOIN,
    OperationType.RESOLVE,
})


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(self, ok: bool, error: Optional[WagerError] = None):
        self.ok = ok
        self.error = error

    @classmethod
    def success(cls) -> "TransitionResult":
        return cls(True, None)

    @classmethod
    def failure(cls, error: WagerError) -> "TransitionResult":
        return cls(False, error)

    def __repr__(self) -> str:
        if self.ok:
            return "TransitionResult(ok)"
        return f"TransitionResult(failed: {self.error})"


def _dispatch_verify(state: EngineState, op: Operation, config: EngineConfig) -> None:
    ot = op.op_type
    if ot == OperationType.OPT_IN_DIRECT_RECEIVE:
        return op_receipt.verify(state, op, config)
    if ot in _LIFECYCLE_TYPES:
        return op_lifecycle.verify(state, op, config)
    if ot == OperationType.CLAIM:
        return op_settlement.verify(state, op, config)

    raise WagerError(ErrorCode.NOT_IMPLEMENTED, f"verify not implemented for {op.op_type}")


def _dispatch_apply(state: EngineState, op: Operation, config: EngineConfig) -> EngineState:
    ot = op.op_type
    if ot == OperationType.OPT_IN_DIRECT_RECEIVE:
        return op_receipt.apply(state, op, config)
    if ot in _LIFECYCLE_TYPES:
        return op_lifecycle.apply(state, op, config)
    if ot == OperationType.CLAIM:
        return op_settlement.apply(state, op, config)

    raise WagerError(ErrorCode.NOT_IMPLEMENTED, f"apply not implemented for {op.op_type}")


def _verify_common(op: Operation) -> None:
    if not isinstance(op.op_type, OperationType):
        raise WagerError(ErrorCode.INVALID_TYPE, "unknown operation type")
    if not isinstance(op.caller, bytes) or len(op.caller) != ADDRESS_LEN:
        raise WagerError(ErrorCode.INVALID_ADDRESS, "caller must be a 32-byte address")


def verify_op(
    state: EngineState, op: Operation, config: Optional[EngineConfig] = None
) -> TransitionResult:
    """Run every precondition check for `op` without changing state."""
    config = config or EngineConfig()
    try:
        _verify_common(op)
        _dispatch_verify(state, op, config)
        return TransitionResult.success()
    except WagerError as exc:
        return TransitionResult.failure(exc)


def apply_op(
    state: EngineState, op: Operation, config: Optional[EngineConfig] = None
) -> tuple[EngineState, TransitionResult]:
    """Apply op to state after verification.

    Failed-op semantics:
    - Guard failure: state unchanged
    - Execution failure (e.g. a rejected transfer): state unchanged, even if
      earlier transfers of the same op had already moved on the working copy
    """
    config = config or EngineConfig()
    try:
        _verify_common(op)
        _dispatch_verify(state, op, config)
    except WagerError as exc:
        return state, TransitionResult.failure(exc)

    try:
        working = _dispatch_apply(state, op, config)
    except WagerError as exc:
        return state, TransitionResult.failure(exc)

    return working, TransitionResult.success()


def apply_batch(
    state: EngineState, ops: list[Operation], config: Optional[EngineConfig] = None
) -> tuple[EngineState, TransitionResult]:
    """Apply operations in order (batch-atomic semantics).

    If any operation fails, the whole batch is rejected and the state is
    unchanged.
    """
    working = state
    for op in ops:
        working, result = apply_op(working, op, config)
        if not result.ok:
            return state, result
    return working, TransitionResult.success()
