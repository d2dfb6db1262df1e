from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 300.0
REAP_TIMEOUT_S = 5.0


class CommandError(RuntimeError):
    """A command could not be started or exited non-zero."""

    def __init__(self, message: str, *, argv: Sequence[str] = (), returncode: Optional[int] = None, output: str = ""):
        super().__init__(message)
        self.argv = list(argv)
        self.returncode = returncode
        self.output = output


class CommandTimeout(CommandError):
    """A command ran past its timeout and was killed."""

    def __init__(self, message: str, *, argv: Sequence[str] = (), timeout: float = 0.0, pid: Optional[int] = None, output: str = ""):
        super().__init__(message, argv=argv, output=output)
        self.timeout = timeout
        self.pid = pid


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def _kill_and_reap(p: subprocess.Popen) -> tuple[str, str]:
    """SIGKILL the child's whole process group and collect what it printed.

    A grandchild we are not allowed to signal (e.g. root apt under sudo) may
    keep the pipes open; in that case the output is dropped after
    REAP_TIMEOUT_S rather than waiting on it.
    """

    try:
        os.killpg(p.pid, signal.SIGKILL)
    except OSError:
        p.kill()

    try:
        return p.communicate(timeout=REAP_TIMEOUT_S)
    except subprocess.TimeoutExpired:
        logger.warning("Process group %s still holds output pipes; abandoning them", p.pid)
        for stream in (p.stdout, p.stderr):
            if stream is not None:
                stream.close()
        p.wait()
        return "", ""


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    timeout: float = DEFAULT_TIMEOUT_S,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command with consistent logging and a hard timeout.

    - Always logs the command.
    - Captures stdout/stderr privately per invocation.
    - On timeout the child is killed and reaped before CommandTimeout is raised.
    - dry_run logs but does not execute.
    """

    argv_list = list(argv)
    logger.info("CMD %s", fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    try:
        p = subprocess.Popen(
            argv_list,
            stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
            # Own process group, so a timeout can take down `sh -c "a | b"` pipelines too.
            start_new_session=True,
        )
    except OSError as e:
        raise CommandError(f"failed to start command: {fmt_argv(argv_list)}: {e}", argv=argv_list) from e

    try:
        stdout, stderr = p.communicate(input=input_text, timeout=timeout)
    except subprocess.TimeoutExpired:
        stdout, stderr = _kill_and_reap(p)
        partial = ((stdout or "") + (stderr or "")).strip()
        logger.error(
            "Command timed out after %ss: %s\nPartial output: %s", timeout, fmt_argv(argv_list), partial
        )
        raise CommandTimeout(
            f"Command timed out after {timeout}s: {fmt_argv(argv_list)}",
            argv=argv_list,
            timeout=timeout,
            pid=p.pid,
            output=partial,
        )

    if stdout:
        logger.debug("STDOUT %s", stdout.strip())
    if stderr:
        logger.debug("STDERR %s", stderr.strip())

    if check and p.returncode != 0:
        logger.error("Command failed (%s): %s\nOutput: %s", p.returncode, fmt_argv(argv_list), (stdout + stderr).strip())
        raise CommandError(
            f"Command failed ({p.returncode}): {fmt_argv(argv_list)}\n{stderr}",
            argv=argv_list,
            returncode=p.returncode,
            output=stdout + stderr,
        )

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=stdout, stderr=stderr)
