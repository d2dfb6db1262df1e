from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Sequence

from .command import DEFAULT_TIMEOUT_S, CmdResult, run_cmd

logger = logging.getLogger(__name__)


class SystemOps:
    """Everything the provisioner does to the host goes through here.

    Installer, preflight, verification and host inspection all take an
    instance as a parameter, so tests can hand in a fake with the same
    methods instead of patching module globals.
    """

    def __init__(self, *, dry_run: bool = False, timeout: float = DEFAULT_TIMEOUT_S) -> None:
        self.dry_run = dry_run
        self.timeout = timeout

    def run(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        input_text: str | None = None,
        probe: bool = False,
    ) -> CmdResult:
        """Run a command. probe=True marks a read-only query that executes even in dry-run."""
        return run_cmd(
            argv,
            check=check,
            timeout=self.timeout,
            input_text=input_text,
            dry_run=self.dry_run and not probe,
        )

    def makedirs(self, path: str, mode: int = 0o755) -> None:
        if self.dry_run:
            logger.info("Would create directory %s", path)
            return
        Path(path).mkdir(mode=mode, parents=True, exist_ok=True)

    def remove(self, path: str) -> None:
        if self.dry_run:
            logger.info("Would remove %s", path)
            return
        os.remove(path)

    def remove_tree(self, path: str) -> None:
        if self.dry_run:
            logger.info("Would remove directory tree %s", path)
            return
        shutil.rmtree(path)

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def read_text(self, path: str) -> str:
        return Path(path).read_text(encoding="utf-8", errors="ignore")

    def append_line(self, path: str, content: str) -> None:
        if self.dry_run:
            logger.info("Would append to %s: %s", path, content)
            return
        with open(path, "a", encoding="utf-8") as f:
            f.write("\n" + content + "\n")
