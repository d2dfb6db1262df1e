from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..lib.preflight import check_dir_permissions, check_user_and_sudo

logger = logging.getLogger(__name__)


class PreflightStep:
    step_id = "10_preflight"

    def __init__(self, ops) -> None:
        self.ops = ops

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        check_dir_permissions(os.getcwd())
        user = check_user_and_sudo(self.ops)
        state.setdefault("execution", {})["user"] = user
        return state
