from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.installer import install_dependencies

logger = logging.getLogger(__name__)


class InstallDependenciesStep:
    step_id = "50_install_dependencies"

    def __init__(self, ops) -> None:
        self.ops = ops

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        exe = state.get("execution") or {}
        host = state.get("host")
        arch = host.architecture if host is not None else "amd64"

        done = install_dependencies(self.ops, options=cfg, home=exe["home"], arch=arch)
        state.setdefault("execution", {})["installed"] = done
        return state
