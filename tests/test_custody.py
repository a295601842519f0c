"""Custodial account provisioning specs."""

from __future__ import annotations

from copy import copy, deepcopy
from typing import Any, Callable

import pytest

from wager_spec.custody import (
    check_capability,
    create_custodial_account,
    derive_escrow_address,
    release,
)
from wager_spec.errors import ErrorCode, WagerError
from wager_spec.ledger import can_receive, mint, opt_in_direct_receive, owner_of, transfer
from wager_spec.test_accounts import ALICE, BOB, MINTER
from wager_spec.types import AssetId, CustodyCapability, EngineState


def _asset(name: str) -> AssetId:
    return AssetId(creator=MINTER, collection="Cards", name=name)


def test_escrow_address_is_deterministic() -> None:
    a = derive_escrow_address(ALICE, _asset("a"), 2)
    assert a == derive_escrow_address(ALICE, _asset("a"), 2)
    assert len(a) == 32
    assert a != derive_escrow_address(BOB, _asset("a"), 2)
    assert a != derive_escrow_address(ALICE, _asset("b"), 2)
    assert a != derive_escrow_address(ALICE, _asset("a"), 3)
    bumped = AssetId(creator=MINTER, collection="Cards", name="a", property_version=1)
    assert a != derive_escrow_address(ALICE, bumped, 2)


def test_escrow_address_fields_do_not_run_together() -> None:
    left = AssetId(creator=MINTER, collection="ab", name="c")
    right = AssetId(creator=MINTER, collection="a", name="bc")
    assert derive_escrow_address(ALICE, left, 1) != derive_escrow_address(ALICE, right, 1)


def test_escrow_address_vectors(
    vector_test_group: Callable[[str, dict[str, Any]], None],
) -> None:
    rel_path = "custody/escrow_address.json"

    for owner_name, owner, name, req in (
        ("alice", ALICE, "alice-0", 1),
        ("alice", ALICE, "alice-0", 5),
        ("bob", BOB, "bob-0", 2),
    ):
        asset = _asset(name)
        address = derive_escrow_address(owner, asset, req)
        vector_test_group(
            rel_path,
            {
                "name": f"escrow_{owner_name}_{name}_req_{req}",
                "description": "Escrow address for (owner, asset, join requirement).",
                "input": {
                    "owner": owner.hex(),
                    "asset": {
                        "creator": asset.creator.hex(),
                        "collection": asset.collection,
                        "name": asset.name,
                        "property_version": asset.property_version,
                    },
                    "join_requirement": req,
                },
                "expected": {"escrow": address.hex()},
            },
        )
        assert len(address) == 32


def test_provisioning_is_idempotent() -> None:
    state = EngineState()
    addr, cap = create_custodial_account(state, ALICE, _asset("a"), 2)
    addr2, cap2 = create_custodial_account(state, ALICE, _asset("a"), 2)
    assert addr == addr2
    assert cap is cap2
    assert cap.account == addr
    assert state.custodians == {addr: cap}
    assert can_receive(state.ledger, addr)


def test_release_with_capability() -> None:
    state = EngineState()
    addr, cap = create_custodial_account(state, ALICE, _asset("a"), 1)
    mint(state.ledger, _asset("a"), ALICE)
    transfer(state.ledger, ALICE, _asset("a"), addr)
    opt_in_direct_receive(state.ledger, BOB)

    release(state, cap, _asset("a"), BOB)
    assert owner_of(state.ledger, _asset("a")) == BOB


def test_forged_capability_is_rejected() -> None:
    state = EngineState()
    addr, cap = create_custodial_account(state, ALICE, _asset("a"), 1)
    mint(state.ledger, _asset("a"), ALICE)
    transfer(state.ledger, ALICE, _asset("a"), addr)
    opt_in_direct_receive(state.ledger, BOB)

    forged = CustodyCapability(account=addr, secret=bytes(32))
    with pytest.raises(WagerError) as exc_info:
        release(state, forged, _asset("a"), BOB)
    assert exc_info.value.code == ErrorCode.UNAUTHORIZED_CAPABILITY
    assert owner_of(state.ledger, _asset("a")) == addr


def test_unregistered_capability_is_rejected() -> None:
    stray = CustodyCapability(account=bytes(32), secret=bytes(32))
    with pytest.raises(WagerError) as exc_info:
        check_capability(EngineState(), stray)
    assert exc_info.value.code == ErrorCode.UNAUTHORIZED_CAPABILITY


def test_capability_is_never_cloned_and_hides_secret() -> None:
    state = EngineState()
    _, cap = create_custodial_account(state, ALICE, _asset("a"), 1)
    assert copy(cap) is cap
    assert deepcopy(cap) is cap
    assert deepcopy(state).custodians[cap.account] is cap
    assert cap.secret.hex() not in repr(cap)
