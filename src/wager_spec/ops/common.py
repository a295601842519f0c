"""Payload parsing and event recording shared by the operation modules."""

from __future__ import annotations

from typing import Optional

from ..config import ADDRESS_LEN, MAX_ASSET_NAME_LEN, MAX_COLLECTION_NAME_LEN
from ..errors import ErrorCode, WagerError
from ..guards import equal_lengths
from ..types import AssetId, EngineState, EventKind, Operation, WagerEvent


def payload_dict(op: Operation) -> dict:
    if op.payload is None:
        return {}
    if not isinstance(op.payload, dict):
        raise WagerError(ErrorCode.INVALID_PAYLOAD, f"{op.op_type.value} payload must be dict")
    return op.payload


def to_address(value: object, what: str) -> bytes:
    if isinstance(value, (bytes, bytearray)) and len(value) == ADDRESS_LEN:
        return bytes(value)
    raise WagerError(ErrorCode.INVALID_ADDRESS, f"{what} must be a {ADDRESS_LEN}-byte address")


def to_asset(creator: object, collection: object, name: object, version: object) -> AssetId:
    if not isinstance(collection, str) or not collection or len(collection) > MAX_COLLECTION_NAME_LEN:
        raise WagerError(ErrorCode.INVALID_PAYLOAD, "invalid collection name")
    if not isinstance(name, str) or not name or len(name) > MAX_ASSET_NAME_LEN:
        raise WagerError(ErrorCode.INVALID_PAYLOAD, "invalid asset name")
    if isinstance(version, bool) or not isinstance(version, int) or version < 0:
        raise WagerError(ErrorCode.INVALID_PAYLOAD, "invalid property_version")
    return AssetId(
        creator=to_address(creator, "collection creator"),
        collection=collection,
        name=name,
        property_version=version,
    )


def asset_from_payload(p: dict) -> AssetId:
    return to_asset(
        p.get("collection_creator"),
        p.get("collection"),
        p.get("name"),
        p.get("property_version", 0),
    )


def assets_from_payload(p: dict) -> tuple[AssetId, ...]:
    """Zip the four parallel descriptor lists into asset ids."""
    seqs = [p.get(k) for k in ("creators", "collections", "names", "versions")]
    if not all(isinstance(s, (list, tuple)) for s in seqs):
        raise WagerError(ErrorCode.INVALID_PAYLOAD, "asset descriptors must be lists")
    equal_lengths(*seqs)
    return tuple(to_asset(*fields) for fields in zip(*seqs))


def record_event(
    state: EngineState,
    kind: EventKind,
    game: bytes,
    actor: bytes,
    winner: Optional[bytes] = None,
) -> None:
    state.events.append(
        WagerEvent(seq=len(state.events), kind=kind, game=game, actor=actor, winner=winner)
    )
