"""Read and write fixture files (JSON, with YAML copies on request)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from wager_spec.codec_adapter import op_to_json, state_to_json
from wager_spec.state_digest import compute_state_digest
from wager_spec.state_transition import TransitionResult
from wager_spec.types import EngineState, Operation

from tools.yaml_dump import load_yaml, write_yaml

FIXTURE_SUFFIXES = (".json", ".yaml", ".yml")


def make_case(
    name: str,
    pre_state: EngineState,
    op: Operation,
    post_state: EngineState,
    result: TransitionResult,
) -> dict[str, Any]:
    post_json = state_to_json(post_state)
    return {
        "name": name,
        "pre_state": state_to_json(pre_state),
        "op": op_to_json(op),
        "expected": {
            "ok": result.ok,
            "error": result.error.code.name if result.error else None,
            "post_state": post_json,
            "state_digest": compute_state_digest(post_json),
        },
    }


def write_cases(path: Path, cases: list[dict[str, Any]], *, yaml_copy: bool = False) -> None:
    names = [c["name"] for c in cases]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"duplicate case names in {path.name}: {duplicates}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"cases": cases}, indent=2))
    if yaml_copy:
        write_yaml(path.with_suffix(".yaml"), {"cases": cases})


def load_cases(path: Path) -> list[dict[str, Any]]:
    if path.suffix in (".yaml", ".yml"):
        data = load_yaml(path.read_text())
    else:
        data = json.loads(path.read_text())
    return list(data.get("cases", []))


def find_fixture_files(root: Path) -> list[Path]:
    if root.is_file():
        return [root]
    if not root.is_dir():
        return []
    return sorted(p for p in root.rglob("*") if p.is_file() and p.suffix in FIXTURE_SUFFIXES)
