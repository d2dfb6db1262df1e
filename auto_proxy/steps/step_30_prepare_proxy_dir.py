from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.installer import InstallError

logger = logging.getLogger(__name__)


class PrepareProxyDirStep:
    """Decide what to do with a proxy directory left by an earlier run.

    Re-running with `keep` may leave a partially installed tree behind; that
    is tolerated.
    """

    step_id = "30_prepare_proxy_dir"

    def __init__(self, ops) -> None:
        self.ops = ops

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        proxy_dir = str(cfg.get("proxy_dir") or "trojan-go")
        policy = str(cfg.get("existing_dir") or "keep")

        if not self.ops.exists(proxy_dir):
            return state

        logger.info("Directory %s already exists.", proxy_dir)
        if policy == "replace":
            logger.info("Removing existing %s directory...", proxy_dir)
            try:
                self.ops.remove_tree(proxy_dir)
            except OSError as e:
                raise InstallError(f"failed to remove {proxy_dir}: {e}") from e
            logger.info("%s directory removed.", proxy_dir)
        else:
            logger.info("Keeping existing %s directory.", proxy_dir)

        state.setdefault("execution", {}).setdefault("decisions", {})["existing_dir"] = policy
        return state
