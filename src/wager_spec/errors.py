"""Wager engine error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCategory(IntEnum):
    SUCCESS = 0x00
    VALIDATION = 0x01
    AUTHORIZATION = 0x02
    RESOURCE = 0x03
    STATE = 0x04
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Success
    SUCCESS = 0x0000

    # Validation
    INVALID_PAYLOAD = 0x0100
    INVALID_TYPE = 0x0101
    INVALID_ADDRESS = 0x0102
    INVALID_JOIN_REQUIREMENT = 0x0103
    EQUAL_LENGTHS = 0x0110
    JOIN_AMOUNT_MET = 0x0111
    NOT_SAME_COLLECTION = 0x0112

    # Authorization
    MUST_BE_A_PARTICIPANT = 0x0200
    NOT_WINNER = 0x0201
    UNAUTHORIZED_CAPABILITY = 0x0202

    # Resource
    TRANSFER_REJECTED = 0x0300

    # State
    MUST_NOT_EXIST = 0x0400
    MUST_EXIST = 0x0401
    MUST_BE_ACTIVE = 0x0402
    MUST_NOT_BE_ACTIVE = 0x0403
    MUST_HAVE_OPPONENT = 0x0404
    MUST_NOT_HAVE_OPPONENT = 0x0405
    MUST_HAVE_OUTCOME = 0x0406
    MUST_NOT_HAVE_CLAIMED = 0x0407

    # Internal
    NOT_IMPLEMENTED = 0xFF01

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.value >> 8)


@dataclass(frozen=True)
class WagerError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen.
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__", "__notes__"))
_frozen_setattr = WagerError.__setattr__


def _wager_error_setattr(self: WagerError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


WagerError.__setattr__ = _wager_error_setattr  # type: ignore[method-assign]
