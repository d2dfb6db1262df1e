from __future__ import annotations

import logging
import shlex

from .files import append_to_file

logger = logging.getLogger(__name__)


def add_signed_repo(
    ops,
    *,
    name: str,
    key_url: str,
    repo_url: str,
    suite: str,
    component: str = "main",
) -> str:
    """Register a third-party apt source signed by its own keyring.

    Writes:
      /usr/share/keyrings/<name>.gpg            (dearmored key)
      /etc/apt/sources.list.d/<name>.list       (signed-by deb line)

    Returns the source line.
    """

    keyring = f"/usr/share/keyrings/{name}.gpg"
    logger.info("Adding %s GPG key to %s", name, keyring)
    ops.run(
        [
            "sh",
            "-c",
            f"curl -fsSL {shlex.quote(key_url)} | sudo gpg --dearmor --yes -o {shlex.quote(keyring)}",
        ]
    )

    source_line = f"deb [signed-by={keyring}] {repo_url} {suite} {component}"
    list_path = f"/etc/apt/sources.list.d/{name}.list"
    logger.info("Adding %s repository: %s", name, source_line)
    append_to_file(ops, list_path, source_line)
    return source_line
