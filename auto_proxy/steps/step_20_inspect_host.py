from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.hostinfo import collect_host_info

logger = logging.getLogger(__name__)


class InspectHostStep:
    step_id = "20_inspect_host"

    def __init__(self, ops) -> None:
        self.ops = ops

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        exe = state.get("execution") or {}
        state["host"] = collect_host_info(self.ops, options=cfg, home=exe["home"])
        return state
