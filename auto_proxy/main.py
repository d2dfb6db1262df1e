from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .config_store import ensure_defaults, load_options
from .lib.preflight import PreflightError
from .lib.sysops import SystemOps
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import run_pipeline
from .steps import (
    InspectHostStep,
    InstallDependenciesStep,
    PreflightStep,
    PrepareProxyDirStep,
    VerifyToolsStep,
    WriteConfigStep,
)

logger = logging.getLogger(__name__)


def build_steps(ops):
    return [
        PreflightStep(ops),
        InspectHostStep(ops),
        PrepareProxyDirStep(ops),
        WriteConfigStep(),
        InstallDependenciesStep(ops),
        VerifyToolsStep(ops),
    ]


def _home_dir() -> str:
    try:
        return str(Path.home())
    except RuntimeError as e:
        raise PreflightError(f"failed to resolve home directory: {e}") from e


def run(
    *,
    options: Dict[str, Any],
    log_path: str = DEFAULT_LOG_PATH,
    verbose: bool = False,
    ops: Optional[SystemOps] = None,
) -> Dict[str, Any]:
    """Provision this host: preflight, inspect, write config, install, verify."""

    actual_log_path = configure_logging(log_path, verbose=verbose)
    logger.info("Initializing auto-proxy...")

    options = ensure_defaults(options)
    if ops is None:
        ops = SystemOps(dry_run=bool(options["dry_run"]), timeout=float(options["command_timeout"]))

    state: Dict[str, Any] = {
        "config": options,
        "execution": {"log_path": actual_log_path, "warnings": []},
    }

    try:
        state["execution"]["home"] = _home_dir()
        result = run_pipeline(state=state, steps=build_steps(ops))
    except Exception:
        logger.exception("Provisioning failed at step %s", state["execution"].get("current_step"))
        raise

    state = result.state
    state["execution"]["ran_steps"] = result.ran_steps
    logger.info("Initialization completed.")
    return state


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="auto-proxy", description="Automate proxy server provisioning")
    sub = p.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Collect host info, write config and install dependencies")
    init.add_argument("--config", default=None, help="Path of the JSON config to write (default config.json)")
    init.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to the run log (overwritten each run)")
    init.add_argument("--options", default=None, help="Run options file (yaml|json)")
    init.add_argument(
        "--replace-existing",
        action="store_true",
        help="Remove an existing proxy directory instead of keeping it",
    )
    init.add_argument("--dry-run", action="store_true", help="Log commands without executing them")
    init.add_argument("-v", "--verbose", action="store_true", help="Show command output on the console")

    args = p.parse_args(argv)

    try:
        options = load_options(args.options)
        if args.config:
            options["config_path"] = args.config
        if args.replace_existing:
            options["existing_dir"] = "replace"
        if args.dry_run:
            options["dry_run"] = True

        run(options=options, log_path=args.log, verbose=args.verbose)
    except (RuntimeError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
