"""WagerEngine facade: typed calls, views, logging, config and concurrency."""

from __future__ import annotations

import logging
import threading

import pytest

from wager_spec.codec_adapter import state_to_json
from wager_spec.config import EngineConfig
from wager_spec.custody import check_capability
from wager_spec.engine import WagerEngine
from wager_spec.errors import ErrorCode, WagerError
from wager_spec.state_digest import compute_state_digest
from wager_spec.test_accounts import ALICE, BOB, CAROL, DAVE, EVE, MINTER
from wager_spec.types import AssetId, EventKind, Operation, OperationType, WagerStatus


def _asset(name: str) -> AssetId:
    return AssetId(creator=MINTER, collection="Cards", name=name)


def _engine(config: EngineConfig | None = None) -> WagerEngine:
    engine = WagerEngine(config=config)
    engine.mint(_asset("alice-0"), ALICE)
    engine.mint(_asset("alice-1"), ALICE)
    for who, tag in ((BOB, "bob"), (CAROL, "carol"), (DAVE, "dave"), (EVE, "eve")):
        for i in range(2):
            engine.mint(_asset(f"{tag}-{i}"), who)
    return engine


def _assets(tag: str) -> list[AssetId]:
    return [_asset(f"{tag}-0"), _asset(f"{tag}-1")]


def test_full_game_opponent_wins() -> None:
    engine = _engine()
    view = engine.create(ALICE, _asset("alice-0"), 2)
    assert view.status == WagerStatus.CREATED
    assert engine.owner_of(_asset("alice-0")) == engine.escrow_address(ALICE)

    view = engine.join(BOB, ALICE, [MINTER, MINTER], ["Cards", "Cards"], ["bob-0", "bob-1"], [0, 0])
    assert view.opponent == BOB
    assert view.opponent_assets == tuple(_assets("bob"))

    view = engine.resolve(ALICE, creator_won=False)
    assert not view.active
    assert view.resolved_creator_won is False

    view = engine.claim(BOB, ALICE)
    assert view.claimed
    assert engine.holdings(BOB) == sorted([_asset("alice-0")] + _assets("bob"))
    assert engine.holdings(engine.escrow_address(ALICE)) == []
    assert [e.kind for e in engine.events()] == [
        EventKind.CREATED,
        EventKind.JOINED,
        EventKind.RESOLVED,
        EventKind.CLAIMED,
    ]


def test_rejection_raises_and_keeps_state() -> None:
    engine = _engine()
    engine.create(ALICE, _asset("alice-0"), 2)
    before = engine.state_digest()

    with pytest.raises(WagerError) as exc_info:
        engine.create(ALICE, _asset("alice-1"), 2)
    assert exc_info.value.code == ErrorCode.MUST_NOT_EXIST
    assert engine.state_digest() == before
    assert engine.get_wager(ALICE).creator_asset == _asset("alice-0")


def test_claim_gates() -> None:
    engine = _engine()
    engine.create(ALICE, _asset("alice-0"), 2)
    engine.join_assets(BOB, ALICE, _assets("bob"))

    with pytest.raises(WagerError) as exc_info:
        engine.claim(BOB, ALICE)
    assert exc_info.value.code == ErrorCode.MUST_NOT_BE_ACTIVE

    engine.resolve(ALICE, creator_won=True)
    with pytest.raises(WagerError) as exc_info:
        engine.claim(CAROL, ALICE)
    assert exc_info.value.code == ErrorCode.MUST_BE_A_PARTICIPANT


def test_single_payout_many_claims() -> None:
    engine = _engine()
    engine.create(ALICE, _asset("alice-0"), 2)
    engine.join_assets(BOB, ALICE, _assets("bob"))
    engine.resolve(ALICE, creator_won=True)
    before = len(engine.holdings(ALICE))

    engine.claim(ALICE, ALICE)
    for caller in (ALICE, BOB, ALICE):
        with pytest.raises(WagerError) as exc_info:
            engine.claim(caller, ALICE)
        assert exc_info.value.code == ErrorCode.MUST_NOT_HAVE_CLAIMED

    assert len(engine.holdings(ALICE)) == before + 3
    assert engine.holdings(BOB) == []


def test_cancel_returns_asset_and_frees_key() -> None:
    engine = _engine()
    engine.create(ALICE, _asset("alice-0"), 1)
    closed = engine.cancel(ALICE)
    assert closed.status == WagerStatus.CANCELLED
    assert not closed.active
    assert closed.opponent is None
    assert engine.owner_of(_asset("alice-0")) == ALICE
    assert not engine.has_wager(ALICE)
    assert engine.closed() == [closed]

    view = engine.create(ALICE, _asset("alice-0"), 1)
    assert view.active


def test_views_do_not_expose_custody() -> None:
    engine = _engine()
    view = engine.create(ALICE, _asset("alice-0"), 1)
    assert not hasattr(view, "custody")
    with pytest.raises(WagerError) as exc_info:
        engine.get_wager(BOB)
    assert exc_info.value.code == ErrorCode.MUST_EXIST


def test_snapshot_is_detached() -> None:
    engine = _engine()
    engine.create(ALICE, _asset("alice-0"), 1)
    snap = engine.snapshot()
    snap.wagers.clear()
    assert engine.has_wager(ALICE)


def test_snapshot_carries_no_live_capability() -> None:
    engine = _engine()
    engine.create(ALICE, _asset("alice-0"), 1)
    engine.create(BOB, _asset("bob-0"), 1)
    engine.cancel(BOB)
    live = engine._state.custodians

    snap = engine.snapshot()
    copied = [w.custody for w in snap.wagers.values()] + [w.custody for w in snap.closed]
    copied += list(snap.custodians.values())
    assert set(snap.custodians) == set(live)
    for cap in copied:
        assert cap is not live[cap.account]
        assert cap.secret != live[cap.account].secret
        with pytest.raises(WagerError) as exc_info:
            check_capability(engine._state, cap)
        assert exc_info.value.code == ErrorCode.UNAUTHORIZED_CAPABILITY
    assert snap.ledger.owners == engine._state.ledger.owners
    assert engine.state_digest() == compute_state_digest(state_to_json(snap))


def test_check_does_not_apply() -> None:
    engine = _engine()
    engine.check(Operation(OperationType.OPT_IN_DIRECT_RECEIVE, BOB))
    with pytest.raises(WagerError) as exc_info:
        engine.check(Operation(OperationType.RESOLVE, ALICE, {"creator_won": True}))
    assert exc_info.value.code == ErrorCode.MUST_EXIST


def test_opt_in_direct_receive() -> None:
    engine = _engine()
    engine.opt_in_direct_receive(CAROL)
    assert CAROL in engine.snapshot().ledger.direct_receive


def test_logging(caplog: pytest.LogCaptureFixture) -> None:
    engine = _engine()
    with caplog.at_level(logging.INFO, logger="wager_spec.engine"):
        engine.create(ALICE, _asset("alice-0"), 1)
        with pytest.raises(WagerError):
            engine.cancel(BOB)
    messages = [r.getMessage() for r in caplog.records]
    assert any("create committed" in m for m in messages)
    assert any("cancel rejected" in m and "MUST_EXIST" in m for m in messages)
    assert any(r.levelno == logging.WARNING for r in caplog.records)


def test_concurrent_joins_admit_one_opponent() -> None:
    engine = _engine()
    engine.create(ALICE, _asset("alice-0"), 2)
    barrier = threading.Barrier(4)
    outcomes: dict[bytes, object] = {}

    def _join(who: bytes, tag: str) -> None:
        barrier.wait()
        try:
            engine.join_assets(who, ALICE, _assets(tag))
            outcomes[who] = "ok"
        except WagerError as exc:
            outcomes[who] = exc.code

    threads = [
        threading.Thread(target=_join, args=(who, tag))
        for who, tag in ((BOB, "bob"), (CAROL, "carol"), (DAVE, "dave"), (EVE, "eve"))
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    winners = [who for who, outcome in outcomes.items() if outcome == "ok"]
    assert len(winners) == 1
    assert sorted(o for o in outcomes.values() if o != "ok") == [ErrorCode.MUST_NOT_HAVE_OPPONENT] * 3
    assert engine.get_wager(ALICE).opponent == winners[0]
    escrow_assets = engine.holdings(engine.escrow_address(ALICE))
    assert len(escrow_assets) == 3


def test_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WAGER_ENFORCE_SAME_COLLECTION", raising=False)
    monkeypatch.delenv("WAGER_LOSER_MAY_CLOSE", raising=False)
    monkeypatch.delenv("WAGER_LOG_LEVEL", raising=False)
    assert EngineConfig.from_env() == EngineConfig()

    monkeypatch.setenv("WAGER_ENFORCE_SAME_COLLECTION", "no")
    monkeypatch.setenv("WAGER_LOSER_MAY_CLOSE", "False")
    monkeypatch.setenv("WAGER_LOG_LEVEL", "debug")
    config = EngineConfig.from_env()
    assert not config.enforce_same_collection
    assert not config.loser_may_close
    assert config.log_level == "DEBUG"


def test_winner_only_claim_config() -> None:
    engine = _engine(EngineConfig(loser_may_close=False))
    engine.create(ALICE, _asset("alice-0"), 2)
    engine.join_assets(BOB, ALICE, _assets("bob"))
    engine.resolve(ALICE, creator_won=True)
    with pytest.raises(WagerError) as exc_info:
        engine.claim(BOB, ALICE)
    assert exc_info.value.code == ErrorCode.NOT_WINNER
    assert engine.claim(ALICE, ALICE).claimed
