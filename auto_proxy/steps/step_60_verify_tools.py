from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.verify import VerificationError, verify_installed_tools

logger = logging.getLogger(__name__)


class VerifyToolsStep:
    step_id = "60_verify_tools"

    def __init__(self, ops) -> None:
        self.ops = ops

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        exe = state.get("execution") or {}

        try:
            verified = verify_installed_tools(
                self.ops,
                proxy_dir=str(cfg.get("proxy_dir") or "trojan-go"),
                home=exe["home"],
            )
        except VerificationError as e:
            # Non-fatal: the install itself already succeeded.
            logger.warning("Some tools failed verification: %s", e)
            state.setdefault("execution", {}).setdefault("warnings", []).append(str(e))
            return state

        state.setdefault("execution", {})["verified"] = verified
        return state
