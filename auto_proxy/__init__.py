"""auto-proxy: one-shot provisioning of a proxy server node.

Core design goals:
- Fail fast: the first failing step aborts the run
- Every host interaction goes through an injectable SystemOps
- Best-effort host inspection ("unknown" instead of errors)
- Centralized logging
"""

__all__ = []
