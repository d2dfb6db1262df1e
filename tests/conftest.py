from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

import pytest

from auto_proxy.config_store import ensure_defaults
from auto_proxy.lib.command import CmdResult, CommandError
from auto_proxy.logging_utils import reset_logging


class FakeOps:
    """Stand-in for SystemOps that records every call instead of touching the host."""

    def __init__(
        self,
        *,
        respond: Optional[Callable[[List[str]], CmdResult]] = None,
        files: Optional[Dict[str, str]] = None,
        existing: Sequence[str] = (),
    ) -> None:
        self.respond = respond
        self.files = dict(files or {})
        self.existing = set(existing)
        self.calls: List[tuple] = []
        self.probes: List[List[str]] = []

    @property
    def commands(self) -> List[List[str]]:
        return [c[1] for c in self.calls if c[0] == "run"]

    def run(self, argv, *, check=True, input_text=None, probe=False):
        argv = list(argv)
        self.calls.append(("run", argv))
        if probe:
            self.probes.append(argv)
        r = self.respond(argv) if self.respond else CmdResult(argv=argv, returncode=0, stdout="", stderr="")
        if check and r.returncode != 0:
            raise CommandError(f"Command failed ({r.returncode}): {' '.join(argv)}", argv=argv, returncode=r.returncode)
        return r

    def makedirs(self, path, mode=0o755):
        self.calls.append(("makedirs", path))
        self.existing.add(path)

    def remove(self, path):
        self.calls.append(("remove", path))

    def remove_tree(self, path):
        self.calls.append(("remove_tree", path))
        self.existing.discard(path)

    def exists(self, path):
        return path in self.existing or path in self.files

    def read_text(self, path):
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    def append_line(self, path, content):
        self.calls.append(("append_line", path, content))
        self.files[path] = self.files.get(path, "") + "\n" + content + "\n"


def result(argv, returncode=0, stdout="", stderr=""):
    return CmdResult(argv=list(argv), returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def fake_ops():
    return FakeOps()


@pytest.fixture
def options():
    return ensure_defaults({})


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_logging()
