"""Wager engine configuration.

Module constants bound the shape of accepted operations; `EngineConfig`
carries the switchable settlement policies and can be loaded from the
environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

# Accounts
ADDRESS_LEN = 32

# Join requirement bounds (count of opponent assets, encoded as u64)
MIN_JOIN_REQUIREMENT = 1
MAX_JOIN_REQUIREMENT = 2**64 - 1

# Asset descriptors
MAX_COLLECTION_NAME_LEN = 128
MAX_ASSET_NAME_LEN = 128

# Custody
ESCROW_SEED_DOMAIN = b"wager-escrow-v1"
CAPABILITY_SECRET_LEN = 32

_TRUTHY = ("true", "1", "yes")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.lower() in _TRUTHY


@dataclass(frozen=True)
class EngineConfig:
    """Settlement policy switches for the engine."""
    # Opponent assets must come from the creator asset's collection.
    enforce_same_collection: bool = True
    # A losing participant's claim closes the game without any transfer.
    loser_may_close: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load configuration from environment variables."""
        return cls(
            enforce_same_collection=_env_flag("WAGER_ENFORCE_SAME_COLLECTION", True),
            loser_may_close=_env_flag("WAGER_LOSER_MAY_CLOSE", True),
            log_level=os.environ.get("WAGER_LOG_LEVEL", "INFO").upper(),
        )
