import os

import pytest

from auto_proxy.lib.command import CommandError
from auto_proxy.lib.preflight import PreflightError, check_dir_permissions, check_user_and_sudo

from conftest import FakeOps, result


def test_dir_permissions_ok(tmp_path):
    check_dir_permissions(str(tmp_path))
    assert list(tmp_path.iterdir()) == []


@pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
def test_dir_permissions_read_only(tmp_path):
    ro = tmp_path / "ro"
    ro.mkdir()
    ro.chmod(0o555)
    try:
        with pytest.raises(PreflightError, match="no write permission"):
            check_dir_permissions(str(ro))
    finally:
        ro.chmod(0o755)


def test_root_skips_sudo_probe():
    ops = FakeOps()
    assert check_user_and_sudo(ops, user=("root", 0)) == "root"
    assert ops.commands == []


def test_passwordless_sudo():
    ops = FakeOps()
    assert check_user_and_sudo(ops, user=("alice", 1000)) == "alice"
    assert ops.commands == [["sudo", "-n", "true"]]


def test_sudo_password_required():
    ops = FakeOps(respond=lambda argv: result(argv, returncode=1, stderr="sudo: a password is required\n"))
    with pytest.raises(PreflightError, match="sudo password required"):
        check_user_and_sudo(ops, user=("alice", 1000))


def test_no_sudo_privileges():
    ops = FakeOps(respond=lambda argv: result(argv, returncode=1, stderr="alice is not in the sudoers file\n"))
    with pytest.raises(PreflightError, match="does not have sudo privileges"):
        check_user_and_sudo(ops, user=("alice", 1000))


def test_sudo_missing():
    def missing(argv):
        raise CommandError("failed to start command: sudo")

    with pytest.raises(PreflightError, match="does not have sudo privileges"):
        check_user_and_sudo(FakeOps(respond=missing), user=("alice", 1000))


def test_sudo_check_is_a_query():
    ops = FakeOps()
    check_user_and_sudo(ops, user=("alice", 1000))
    assert ops.probes == [["sudo", "-n", "true"]]
