"""Receipt authorization: opt an account in to direct receive."""

from __future__ import annotations

from copy import deepcopy
from typing import Optional

from ..config import EngineConfig
from ..errors import ErrorCode, WagerError
from ..ledger import opt_in_direct_receive
from ..types import EngineState, Operation, OperationType


def verify(state: EngineState, op: Operation, config: Optional[EngineConfig] = None) -> None:
    if op.op_type != OperationType.OPT_IN_DIRECT_RECEIVE:
        raise WagerError(ErrorCode.INVALID_TYPE, f"unsupported receipt op: {op.op_type}")


def apply(state: EngineState, op: Operation, config: Optional[EngineConfig] = None) -> EngineState:
    ns = deepcopy(state)
    opt_in_direct_receive(ns.ledger, op.caller)
    return ns
