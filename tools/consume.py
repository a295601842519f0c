#!/usr/bin/env python3
"""Consume fixtures and validate them against the wager engine."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click

from wager_spec.codec_adapter import op_from_json, state_from_json, state_to_json
from wager_spec.config import EngineConfig
from wager_spec.state_digest import compute_state_digest
from wager_spec.state_transition import apply_op

from tools.fixtures_io import find_fixture_files, load_cases

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parent.parent


def check_case(case: dict[str, Any], config: Optional[EngineConfig] = None) -> Optional[str]:
    """Replay one case; return a failure label or None when it matches."""
    pre_state = state_from_json(case["pre_state"])
    op = op_from_json(case["op"])
    post_state, result = apply_op(pre_state, op, config)

    expected = case["expected"]
    if result.ok != expected["ok"]:
        return "ok_mismatch"

    actual_err = result.error.code.name if result.error else None
    if actual_err != expected["error"]:
        return "error_mismatch"

    digest = compute_state_digest(state_to_json(post_state))
    if digest != expected["state_digest"]:
        return "state_digest_mismatch"
    return None


def check_file(path: Path, config: Optional[EngineConfig] = None) -> list[str]:
    failures: list[str] = []
    for case in load_cases(path):
        label = check_case(case, config)
        if label is not None:
            failures.append(f"{case['name']}: {label}")
    return failures


@click.command()
@click.option(
    "--fixtures",
    default=str(ROOT / "fixtures"),
    help="Path to fixtures directory or a specific fixture file",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--stop-on-failure",
    is_flag=True,
    help="Stop on first failing file",
)
def main(fixtures: str, verbose: bool, stop_on_failure: bool) -> None:
    """Replay wager fixtures and compare results."""
    # Load config from environment, then override with CLI args
    config = EngineConfig.from_env()
    logging.getLogger().setLevel(config.log_level)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    files = find_fixture_files(Path(fixtures))
    if not files:
        logger.error(f"No fixture files found in {fixtures}")
        sys.exit(1)

    logger.info(f"Found {len(files)} fixture files")

    failures: list[str] = []
    for path in files:
        file_failures = check_file(path, config)
        status = "PASS" if not file_failures else "FAIL"
        logger.info(f"  [{status}] {path.name}")
        for f in file_failures:
            logger.debug(f"    {f}")
        failures.extend(file_failures)
        if file_failures and stop_on_failure:
            break

    if failures:
        for f in failures:
            logger.error(f"FAIL {f}")
        sys.exit(1)

    logger.info("All fixtures passed")


if __name__ == "__main__":
    main()
