from __future__ import annotations

import logging
from typing import Sequence

logger = logging.getLogger(__name__)


def apt_update(ops) -> None:
    ops.run(["sudo", "apt", "update"])


def apt_install(ops, packages: Sequence[str]) -> None:
    if not packages:
        return
    ops.run(["sudo", "apt", "install", "-y", *packages])
