from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Sequence, Tuple

from .command import CommandError

logger = logging.getLogger(__name__)


class VerificationError(RuntimeError):
    """One or more installed tools did not answer a version probe."""

    def __init__(self, failures: Sequence[str]):
        self.failures = list(failures)
        super().__init__("verification errors: " + "; ".join(self.failures))


def tool_probes(*, proxy_dir: str, home: str) -> List[Tuple[str, List[str]]]:
    acme = str(Path(home) / ".acme.sh" / "acme.sh")
    return [
        ("trojan-go", [os.path.join(proxy_dir, "trojan-go"), "--version"]),
        ("acme.sh", [acme, "--version"]),
        ("nginx", ["nginx", "-v"]),
        ("fail2ban", ["fail2ban-client", "version"]),
        ("zerotier", ["zerotier-cli", "-v"]),
    ]


def verify_installed_tools(ops, *, proxy_dir: str, home: str) -> List[str]:
    """Probe every installed tool; raise VerificationError listing all failures.

    Returns the names of the tools that verified.
    """

    ok: List[str] = []
    failures: List[str] = []

    for name, argv in tool_probes(proxy_dir=proxy_dir, home=home):
        if name == "trojan-go" and not ops.exists(argv[0]):
            failures.append(f"trojan-go not found at {argv[0]}")
            continue
        try:
            r = ops.run(argv, check=False, probe=True)
        except CommandError as e:
            failures.append(f"{name} failed to run: {e}")
            continue
        if r.returncode != 0:
            failures.append(f"{name} failed to run: exit {r.returncode}")
            continue
        logger.info("%s verified successfully.", name)
        ok.append(name)

    if failures:
        raise VerificationError(failures)
    return ok
