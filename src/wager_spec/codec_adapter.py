"""Convert engine states and operations to and from plain JSON values.

Addresses and other byte strings are hex encoded. Custody capabilities are
never exported: `state_from_json` provisions a fresh capability for every
custodial account it loads and hands it to the wagers using that account.
"""

from __future__ import annotations

import secrets
from typing import Any, Optional

from .config import CAPABILITY_SECRET_LEN
from .types import (
    AssetId,
    CustodyCapability,
    EngineState,
    EventKind,
    Operation,
    OperationType,
    Wager,
    WagerEvent,
    WagerStatus,
)


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def _opt_hex(v: Optional[bytes]) -> Optional[str]:
    return _bytes_to_hex(v) if v is not None else None


def _opt_bytes(v: Optional[str]) -> Optional[bytes]:
    return _hex_to_bytes(v) if v else None


def asset_to_json(asset: AssetId) -> dict[str, Any]:
    return {
        "creator": _bytes_to_hex(asset.creator),
        "collection": asset.collection,
        "name": asset.name,
        "property_version": asset.property_version,
    }


def asset_from_json(data: dict[str, Any]) -> AssetId:
    return AssetId(
        creator=_hex_to_bytes(data["creator"]),
        collection=data["collection"],
        name=data["name"],
        property_version=data.get("property_version", 0),
    )


def wager_to_json(wager: Wager) -> dict[str, Any]:
    return {
        "creator": _bytes_to_hex(wager.creator),
        "creator_asset": asset_to_json(wager.creator_asset),
        "join_requirement": wager.join_requirement,
        "escrow": _bytes_to_hex(wager.escrow),
        "status": wager.status.value,
        "opponent": _opt_hex(wager.opponent),
        "opponent_assets": [asset_to_json(a) for a in wager.opponent_assets],
        "creator_won": wager.creator_won,
    }


def _wager_from_json(data: dict[str, Any], custodians: dict[bytes, CustodyCapability]) -> Wager:
    escrow = _hex_to_bytes(data["escrow"])
    cap = custodians.get(escrow)
    if cap is None:
        cap = CustodyCapability(account=escrow, secret=secrets.token_bytes(CAPABILITY_SECRET_LEN))
        custodians[escrow] = cap
    return Wager(
        creator=_hex_to_bytes(data["creator"]),
        creator_asset=asset_from_json(data["creator_asset"]),
        join_requirement=data["join_requirement"],
        escrow=escrow,
        custody=cap,
        status=WagerStatus(data.get("status", WagerStatus.CREATED.value)),
        opponent=_opt_bytes(data.get("opponent")),
        opponent_assets=tuple(asset_from_json(a) for a in data.get("opponent_assets", [])),
        creator_won=data.get("creator_won"),
    )


def state_to_json(state: EngineState) -> dict[str, Any]:
    holdings = sorted(state.ledger.owners.items(), key=lambda item: item[0])
    result: dict[str, Any] = {
        "wagers": [wager_to_json(w) for _, w in sorted(state.wagers.items())],
        "holdings": [
            {"asset": asset_to_json(asset), "owner": _bytes_to_hex(owner)}
            for asset, owner in holdings
        ],
        "direct_receive": sorted(_bytes_to_hex(a) for a in state.ledger.direct_receive),
        "custodial_accounts": sorted(_bytes_to_hex(a) for a in state.custodians),
    }

    if state.closed:
        result["closed"] = [wager_to_json(w) for w in state.closed]

    if state.events:
        result["events"] = [
            {
                "seq": e.seq,
                "kind": e.kind.value,
                "game": _bytes_to_hex(e.game),
                "actor": _bytes_to_hex(e.actor),
                "winner": _opt_hex(e.winner),
            }
            for e in state.events
        ]

    return result


def state_from_json(data: dict[str, Any]) -> EngineState:
    state = EngineState()

    for addr in data.get("custodial_accounts", []):
        escrow = _hex_to_bytes(addr)
        state.custodians[escrow] = CustodyCapability(
            account=escrow, secret=secrets.token_bytes(CAPABILITY_SECRET_LEN)
        )

    for w in data.get("wagers", []):
        wager = _wager_from_json(w, state.custodians)
        state.wagers[wager.creator] = wager

    for w in data.get("closed", []):
        state.closed.append(_wager_from_json(w, state.custodians))

    for h in data.get("holdings", []):
        state.ledger.owners[asset_from_json(h["asset"])] = _hex_to_bytes(h["owner"])

    state.ledger.direct_receive.update(_hex_to_bytes(a) for a in data.get("direct_receive", []))

    for e in data.get("events", []):
        state.events.append(
            WagerEvent(
                seq=e["seq"],
                kind=EventKind(e["kind"]),
                game=_hex_to_bytes(e["game"]),
                actor=_hex_to_bytes(e["actor"]),
                winner=_opt_bytes(e.get("winner")),
            )
        )

    return state


_BYTES_FIELDS: set[str] = {"collection_creator", "game"}
_BYTES_LIST_FIELDS: set[str] = {"creators"}


def _payload_to_json(payload: Any) -> Any:
    """Recursively convert a payload value, turning bytes into hex strings."""
    if payload is None:
        return None
    if isinstance(payload, (bytes, bytearray)):
        return _bytes_to_hex(bytes(payload))
    if isinstance(payload, dict):
        return {k: _payload_to_json(v) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [_payload_to_json(item) for item in payload]
    return payload


def _json_to_payload(payload: Any) -> Any:
    if not isinstance(payload, dict):
        return payload
    result: dict[str, Any] = {}
    for key, value in payload.items():
        if key in _BYTES_FIELDS and isinstance(value, str):
            result[key] = _hex_to_bytes(value)
        elif key in _BYTES_LIST_FIELDS and isinstance(value, list):
            result[key] = [_hex_to_bytes(v) if isinstance(v, str) else v for v in value]
        else:
            result[key] = value
    return result


def op_to_json(op: Operation) -> dict[str, Any]:
    return {
        "op_type": op.op_type.value,
        "caller": _bytes_to_hex(op.caller),
        "payload": _payload_to_json(op.payload),
    }


def op_from_json(data: dict[str, Any]) -> Operation:
    return Operation(
        op_type=OperationType(data["op_type"]),
        caller=_hex_to_bytes(data["caller"]),
        payload=_json_to_payload(data.get("payload")),
    )
