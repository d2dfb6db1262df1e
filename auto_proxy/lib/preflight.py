from __future__ import annotations

import logging
import os
import pwd
from pathlib import Path

from .command import CommandError

logger = logging.getLogger(__name__)

_HINT = "try running with sudo or change to a writable directory"


class PreflightError(RuntimeError):
    """The environment cannot support an installation run."""


def check_dir_permissions(path: str = ".") -> None:
    base = Path(path)
    probe_file = base / "test-permission-file"
    probe_dir = base / "test-permission-dir"

    try:
        probe_file.write_text("test", encoding="utf-8")
    except OSError as e:
        raise PreflightError(f"no write permission in {base.resolve()}: {e} ({_HINT})") from e
    try:
        probe_file.unlink()
    except OSError as e:
        raise PreflightError(f"no delete permission in {base.resolve()}: {e} ({_HINT})") from e

    try:
        probe_dir.mkdir(mode=0o755)
    except OSError as e:
        raise PreflightError(f"no permission to create directories in {base.resolve()}: {e} ({_HINT})") from e
    try:
        probe_dir.rmdir()
    except OSError as e:
        raise PreflightError(f"no permission to delete directories in {base.resolve()}: {e} ({_HINT})") from e

    logger.info("Directory permissions verified: %s", base.resolve())


def current_user() -> tuple[str, int]:
    uid = os.geteuid()
    try:
        return pwd.getpwuid(uid).pw_name, uid
    except KeyError as e:
        raise PreflightError(f"failed to get current user (uid={uid})") from e


def check_user_and_sudo(ops, *, user: tuple[str, int] | None = None) -> str:
    """Require root or passwordless sudo. Returns the user name."""

    name, uid = user if user is not None else current_user()
    logger.info("Current user: %s (UID: %s)", name, uid)

    if uid == 0:
        logger.info("Running as root, proceeding...")
        return name

    try:
        r = ops.run(["sudo", "-n", "true"], check=False, probe=True)
    except CommandError as e:
        raise PreflightError(f"user {name} does not have sudo privileges: {e}") from e

    if r.returncode != 0:
        if "password is required" in (r.stderr or ""):
            logger.warning("sudo requires a password, which would stall the installation.")
            logger.warning("To enable passwordless sudo, run 'sudo visudo' and add:")
            logger.warning("  %s ALL=(ALL) NOPASSWD: ALL", name)
            logger.warning("Alternatively, run this program as root.")
            raise PreflightError("sudo password required")
        raise PreflightError(
            f"user {name} does not have sudo privileges: exit {r.returncode}: {(r.stderr or '').strip()}"
        )

    logger.info("User has passwordless sudo privileges, proceeding...")
    return name
