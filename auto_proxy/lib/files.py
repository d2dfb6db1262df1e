from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

PRIVILEGED_PREFIXES = ("/etc/",)


def append_to_file(ops, path: str, content: str) -> bool:
    """Append a line unless it is already present.

    Files under /etc/ are written through `sudo tee -a`. Returns True when
    something was appended.
    """

    try:
        existing = ops.read_text(path)
    except OSError:
        existing = ""

    if existing and content in existing:
        logger.info("Content already exists in %s, skipping", path)
        return False

    if path.startswith(PRIVILEGED_PREFIXES):
        ops.run(["sudo", "tee", "-a", path], input_text=content + "\n")
    else:
        ops.append_line(path, content)

    logger.info("Content appended to %s: %s", path, content)
    return True
