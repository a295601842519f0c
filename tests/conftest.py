"""Pytest hooks to generate fixtures while asserting behaviour."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from wager_spec.state_transition import TransitionResult, apply_op
from wager_spec.types import EngineState, Operation
from tools.fixtures_io import make_case, write_cases

_STATE_CASES: dict[str, list[dict[str, Any]]] = {}
_VECTOR_CASES: dict[str, list[dict[str, Any]]] = {}

StateTestGroup = Callable[[str, str, EngineState, Operation], "tuple[EngineState, TransitionResult]"]


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated fixtures",
    )
    parser.addoption(
        "--yaml",
        action="store_true",
        default=False,
        help="Also write YAML copies of state fixtures",
    )


@pytest.fixture
def state_test_group() -> StateTestGroup:
    """Apply an operation, collect the case under a fixture path and return the outcome."""

    def _state_test_group(
        rel_path: str, name: str, pre_state: EngineState, op: Operation
    ) -> tuple[EngineState, TransitionResult]:
        post_state, result = apply_op(pre_state, op)
        _STATE_CASES.setdefault(rel_path, []).append(
            make_case(name, pre_state, op, post_state, result)
        )
        return post_state, result

    return _state_test_group


@pytest.fixture
def vector_test_group() -> Callable[[str, dict[str, Any]], None]:
    """Collect pre-built test_vectors under a specific fixture path."""

    def _vector_test_group(rel_path: str, vector: dict[str, Any]) -> None:
        _VECTOR_CASES.setdefault(rel_path, []).append(vector)

    return _vector_test_group


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return
    yaml_copy = bool(session.config.getoption("--yaml"))

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for rel_path, cases in _STATE_CASES.items():
        if not cases:
            continue
        write_cases(out / rel_path, cases, yaml_copy=yaml_copy)

    for rel_path, vectors in _VECTOR_CASES.items():
        if not vectors:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"test_vectors": vectors}, indent=2))
