from __future__ import annotations

import logging
from typing import Any, Dict

from ..config_store import write_config

logger = logging.getLogger(__name__)


class WriteConfigStep:
    step_id = "40_write_config"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        host = state.get("host")
        if host is None:
            raise RuntimeError("host info missing; 20_inspect_host must run first")

        path = str(cfg.get("config_path") or "config.json")
        if cfg.get("dry_run"):
            logger.info("Would write config to %s", path)
            return state
        write_config(path, host)
        return state
